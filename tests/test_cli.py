"""Tests for the command line inspector"""

import numpy as np
import pytest

from minegltf.__main__ import main


def test_usage(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2
    assert "usage" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.glb")]) == 1
    assert "ERROR" in capsys.readouterr().out


def test_summary(builder, tmp_path, capsys):
    node = builder.add_triangle_node()
    builder.add_channel(node, "translation", [0.0, 0.5, 1.0], np.zeros((3, 3), dtype='f4'))
    path = builder.save(tmp_path / "walker.glb")

    assert main([str(path), "--no-materials"]) == 0
    out = capsys.readouterr().out
    assert "Model: walker" in out
    assert "Vertices: 3" in out
    assert "Animated: True" in out
    assert "Frames: 3" in out
