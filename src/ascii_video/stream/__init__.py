"""
Stream Module
=============

Sharing and consumption of converted ASCII videos.

This module provides the sharing layer:
    - StreamSessionStore: In-memory, TTL-bounded session map with reaper
    - render_terminal_script: Bash playback script for a session
    - VideoResolver: Third-party URL-to-video resolution client

Example:
    from ascii_video.stream import StreamSessionStore, render_terminal_script

    store = StreamSessionStore(ttl_seconds=3600)
    await store.start()

    stream_id = store.create(frames, frame_rate=15, title="clip")
    script = render_terminal_script(store.get(stream_id))
"""

from ascii_video.stream.store import StreamSessionStore
from ascii_video.stream.script import render_terminal_script, script_filename
from ascii_video.stream.resolver import VideoResolver


__all__ = [
    "StreamSessionStore",
    "render_terminal_script",
    "script_filename",
    "VideoResolver",
]
