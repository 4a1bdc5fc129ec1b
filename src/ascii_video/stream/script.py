"""
Terminal Script Generator
=========================

Serializes a StreamSession into a self-contained bash playback script.

The script clears the terminal, prints a short banner, then loops forever
printing each frame in order with a delay of 1/frame_rate seconds, clearing
the screen between frames.

Usage (client side):
    curl -s http://localhost:8000/api/terminal/<stream_id> | bash

Design Rules:
    - Pure function of the session; no frame computation happens here
    - Frames are emitted through quoted heredocs, so no shell expansion
    - The heredoc delimiter never collides with a frame line
    - The title is shell-quoted before it reaches echo
"""

import shlex
from typing import Iterable

from ascii_video.models.frames import StreamSession


_DELIMITER = "ASCII_FRAME"


def _format_rate(frame_rate: float) -> str:
    if float(frame_rate).is_integer():
        return str(int(frame_rate))
    return f"{frame_rate:g}"


def _choose_delimiter(frames: Iterable[str]) -> str:
    lines = {line for frame in frames for line in frame.split("\n")}
    delimiter = _DELIMITER
    suffix = 0
    while delimiter in lines:
        suffix += 1
        delimiter = f"{_DELIMITER}_{suffix}"
    return delimiter


def script_filename(stream_id: str) -> str:
    """Download file name for a stream's playback script."""
    return f"ascii_video_{stream_id}.sh"


def render_terminal_script(session: StreamSession) -> str:
    """
    Render a bash script that plays the session in a terminal.

    Args:
        session: Stored stream session

    Returns:
        Script text (deterministic for a given session)
    """
    frames = [frame.rstrip("\n") for frame in session.frames]
    delimiter = _choose_delimiter(frames)
    rate = _format_rate(session.frame_rate)
    frame_delay = f"{1.0 / session.frame_rate:.3f}"

    lines = [
        "#!/bin/bash",
        f"# ASCII video stream {session.id}",
        "clear",
        f"echo {shlex.quote('Playing: ' + session.title)}",
        f"echo {shlex.quote(f'Frames: {session.frame_count} | FPS: {rate}')}",
        "echo 'Press Ctrl+C to stop'",
        'echo ""',
        "sleep 2",
        "",
        f"frame_delay={frame_delay}",
        "",
        "while true; do",
    ]

    for frame in frames:
        lines.extend([
            "  clear",
            f"  cat << '{delimiter}'",
            frame,
            delimiter,
            '  sleep "$frame_delay"',
        ])

    lines.append("done")
    return "\n".join(lines) + "\n"
