"""
Animation Player

Steps resampled bone animations frame by frame at the timeline's fixed rate.
"""

from typing import Dict, Optional, Tuple

from pyrr import Quaternion, Vector3

from .animation import BoneAnimation


class AnimationPlayer:
    """
    Plays back a set of resampled bone animations.

    Manages:
    - Playback time and the matching grid frame
    - Play/pause/loop states
    - Looking up every bone's pose for the current frame
    """

    def __init__(self, bone_animations: Dict[int, BoneAnimation]):
        """
        Initialize animation player.

        Args:
            bone_animations: Mapping of node index -> BoneAnimation sharing one timeline
        """
        self.bone_animations = bone_animations
        self.current_time: float = 0.0
        self.is_playing: bool = False
        self.loop: bool = True
        self.playback_speed: float = 1.0

        first = next(iter(bone_animations.values()), None)
        if first is not None and first.frame_count > 1:
            timestamps = first.translation_timestamps
            self.frame_count = first.frame_count
            self.frame_time = float(timestamps[1] - timestamps[0])
            self.duration = float(timestamps[-1])
        else:
            self.frame_count = 1 if first is not None else 0
            self.frame_time = 0.0
            self.duration = 0.0

    def play(self, loop: bool = True):
        """
        Start playback from the first frame.

        Args:
            loop: Whether to wrap around at the end
        """
        self.current_time = 0.0
        self.is_playing = True
        self.loop = loop

    def pause(self):
        """Pause animation playback."""
        self.is_playing = False

    def resume(self):
        """Resume animation playback."""
        self.is_playing = True

    def stop(self):
        """Stop playback and rewind to the first frame."""
        self.is_playing = False
        self.current_time = 0.0

    def update(self, delta_time: float):
        """
        Advance playback.

        Args:
            delta_time: Time elapsed since last update (seconds)
        """
        if not self.is_playing or self.duration <= 0.0:
            return

        self.current_time += delta_time * self.playback_speed

        if self.current_time >= self.duration:
            if self.loop:
                self.current_time = self.current_time % self.duration
            else:
                self.current_time = self.duration
                self.is_playing = False

    @property
    def current_frame(self) -> int:
        """Grid frame index for the current playback time."""
        if self.frame_time <= 0.0:
            return 0
        frame = int(self.current_time / self.frame_time + 1e-6)
        return min(frame, self.frame_count - 1)

    def sample(self, frame: Optional[int] = None) -> Dict[int, Tuple[Vector3, Quaternion, Vector3]]:
        """
        Get every bone's pose at a frame.

        Args:
            frame: Grid frame index (defaults to the current frame)

        Returns:
            Dictionary mapping node index -> (translation, rotation, scale)
        """
        if frame is None:
            frame = self.current_frame
        return {bone_id: animation.pose(frame) for bone_id, animation in self.bone_animations.items()}

    def __repr__(self):
        return (f"AnimationPlayer(bones={len(self.bone_animations)}, frame={self.current_frame}/"
                f"{self.frame_count}, playing={self.is_playing})")
