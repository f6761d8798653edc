"""
FFmpeg video encoder.

Pipes raw RGB frames to ffmpeg via stdin and optionally muxes an audio track.
No intermediate image files: frames go straight from numpy arrays to the
encoder.
"""

import subprocess
from pathlib import Path
from typing import Iterator


# Quality presets: (preset, crf, pix_fmt)
QUALITY_PRESETS = {
    "high": ("slow", "18", "yuv444p"),
    "medium": ("medium", "23", "yuv420p"),
    "fast": ("ultrafast", "28", "yuv420p"),
}


def build_command(
    output_path: Path,
    width: int,
    height: int,
    fps: int,
    quality: str = "high",
    audio_path: Path | None = None,
    duration: float | None = None,
) -> list[str]:
    """Assemble the ffmpeg argument list."""
    preset, crf, pix_fmt = QUALITY_PRESETS.get(quality, QUALITY_PRESETS["high"])

    cmd = [
        "ffmpeg", "-y",
        # Raw video input from pipe
        "-f", "rawvideo",
        "-pix_fmt", "rgb24",
        "-s", f"{width}x{height}",
        "-r", str(fps),
        "-i", "pipe:0",
    ]
    if audio_path is not None:
        cmd += ["-i", str(audio_path)]

    cmd += [
        "-c:v", "libx264",
        "-preset", preset,
        "-crf", crf,
        "-pix_fmt", pix_fmt,
    ]
    if audio_path is not None:
        cmd += ["-c:a", "aac", "-b:a", "192k", "-shortest"]
    else:
        cmd += ["-an"]

    if duration is not None:
        cmd += ["-t", str(duration)]

    cmd.append(str(output_path))
    return cmd


def encode_video(
    frame_iterator: Iterator,
    output_path: Path,
    width: int = 1280,
    height: int = 720,
    fps: int = 60,
    quality: str = "high",
    audio_path: Path | None = None,
    duration: float | None = None,
    total_frames: int | None = None,
    progress_callback: callable = None,
) -> Path:
    """
    Encode frames to MP4, with audio when `audio_path` is given.

    Args:
        frame_iterator: Yields (H, W, 3) uint8 numpy arrays.
        output_path: Output MP4 path.
        width: Frame width.
        height: Frame height.
        fps: Frames per second.
        quality: "high", "medium", or "fast".
        audio_path: Optional audio file to mux in.
        duration: Optional output duration limit in seconds.
        total_frames: Total frame count for progress reporting.
        progress_callback: Optional callback(current_frame, total_frames).

    Returns:
        Path to the output file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = build_command(output_path, width, height, fps, quality, audio_path, duration)

    proc = subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )

    frame_count = 0
    try:
        for frame in frame_iterator:
            proc.stdin.write(frame.tobytes())
            frame_count += 1

            if progress_callback and total_frames:
                progress_callback(frame_count, total_frames)

    except BrokenPipeError:
        pass
    finally:
        if proc.stdin:
            proc.stdin.close()

    proc.wait()

    if proc.returncode != 0:
        stderr = proc.stderr.read().decode("utf-8", errors="replace")
        # Filter out common non-error ffmpeg messages
        error_lines = [
            line for line in stderr.split("\n")
            if "error" in line.lower() or "invalid" in line.lower()
        ]
        error_msg = "\n".join(error_lines[-5:]) if error_lines else stderr[-500:]
        raise RuntimeError(
            f"ffmpeg exited with code {proc.returncode}: {error_msg}"
        )

    return output_path
