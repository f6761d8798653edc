"""Tests for the FFmpeg video encoder."""

import io
from pathlib import Path

import numpy as np
import pytest

from floatingdots.io import encoder
from floatingdots.io.encoder import build_command, encode_video


class _Pipe(io.BytesIO):
    """stdin that keeps its bytes readable after close."""

    def close(self):
        pass


class FakePopen:
    """Captures what would be piped into ffmpeg."""

    instances = []

    def __init__(self, cmd, stdin=None, stdout=None, stderr=None, returncode=0, error=b""):
        self.cmd = cmd
        self.stdin = _Pipe()
        self.stderr = io.BytesIO(error)
        self.returncode = returncode
        FakePopen.instances.append(self)

    def wait(self):
        return self.returncode


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    FakePopen.instances = []
    monkeypatch.setattr(encoder.subprocess, "Popen", FakePopen)
    return FakePopen


def _solid_frames(n: int, width: int, height: int, color=(128, 64, 200)):
    """Generate N solid-color frames."""
    frame = np.full((height, width, 3), color, dtype=np.uint8)
    for _ in range(n):
        yield frame.copy()


class TestBuildCommand:
    def test_video_only(self):
        cmd = build_command(Path("out.mp4"), 320, 240, 30, quality="fast")
        assert cmd[0] == "ffmpeg"
        assert "-an" in cmd
        assert cmd[cmd.index("-s") + 1] == "320x240"
        assert cmd[cmd.index("-r") + 1] == "30"
        assert cmd[cmd.index("-preset") + 1] == "ultrafast"
        assert cmd[-1] == "out.mp4"

    def test_with_audio(self):
        cmd = build_command(Path("out.mp4"), 320, 240, 30, audio_path=Path("drone.wav"), duration=2.0)
        assert "drone.wav" in cmd
        assert "-an" not in cmd
        assert cmd[cmd.index("-c:a") + 1] == "aac"
        assert cmd[cmd.index("-t") + 1] == "2.0"

    def test_unknown_quality_falls_back_to_high(self):
        cmd = build_command(Path("out.mp4"), 16, 16, 30, quality="ludicrous")
        assert cmd[cmd.index("-crf") + 1] == "18"


class TestEncoder:
    def test_pipes_every_frame(self, tmp_path, fake_ffmpeg):
        output = tmp_path / "nested" / "out.mp4"
        result = encode_video(_solid_frames(5, 32, 24), output, width=32, height=24, fps=30)

        assert result == output
        assert output.parent.exists()
        proc = fake_ffmpeg.instances[0]
        assert len(proc.stdin.getvalue()) == 5 * 32 * 24 * 3

    def test_progress_callback(self, tmp_path, fake_ffmpeg):
        progress = []
        encode_video(
            _solid_frames(4, 16, 16), tmp_path / "out.mp4",
            width=16, height=16, fps=30, total_frames=4,
            progress_callback=lambda cur, tot: progress.append((cur, tot)),
        )
        assert progress == [(1, 4), (2, 4), (3, 4), (4, 4)]

    def test_ffmpeg_failure_raises(self, tmp_path, monkeypatch):
        def failing(cmd, **kwargs):
            return FakePopen(cmd, returncode=1, error=b"frame=1\nInvalid argument\n")

        monkeypatch.setattr(encoder.subprocess, "Popen", failing)
        with pytest.raises(RuntimeError, match="Invalid argument"):
            encode_video(_solid_frames(1, 16, 16), tmp_path / "out.mp4", width=16, height=16)
