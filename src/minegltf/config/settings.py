"""
Loader Configuration Settings

All configuration constants for the glTF loader.
Modify these values to change loader behavior.
"""

# ============================================================================
# Animation Resampling
# ============================================================================

# Timestamps are compared as int(t * PRECISION_SCALE), truncated (5 decimal digits)
PRECISION_SCALE = 100_000

# Only one clip is read per asset
ANIMATION_CLIP_INDEX = 0

# Upper bound on the shared frame grid (frames per bone)
MAX_REQUIRED_FRAMES = 1_000_000

# Identity values used to fill components without keyframes
IDENTITY_TRANSLATION = (0.0, 0.0, 0.0)
IDENTITY_ROTATION = (0.0, 0.0, 0.0, 1.0)  # x, y, z, w
IDENTITY_SCALE = (1.0, 1.0, 1.0)

# ============================================================================
# Materials & Textures
# ============================================================================

LOAD_MATERIALS_DEFAULT = True
TEXTURE_MODE = "RGBA"  # Pillow mode decoded textures are converted to

# ============================================================================
# Logging
# ============================================================================

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
