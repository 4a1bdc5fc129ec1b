#!/usr/bin/env python3
"""
ASCII Video Command Line
========================

Local conversion, sharing and terminal playback.

Commands:
    convert   Convert a video locally; print, save or play the frames
    share     Convert a video locally and publish it to a running server
    play      Play a shared stream from a server's WebSocket feed
    serve     Run the HTTP service

Usage:
    ascii-video convert clip.mp4 --width 120 --detail high --play
    ascii-video convert clip.mp4 --output frames.json
    ascii-video share clip.mp4 --server http://localhost:8000
    ascii-video play 4f0c... --server http://localhost:8000
    ascii-video serve
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from typing import List, Optional

import requests
from websockets.exceptions import ConnectionClosed
from websockets.sync.client import connect as ws_connect

from ascii_video.ascii.glyphs import DetailLevel
from ascii_video.config import settings
from ascii_video.errors import AsciiVideoError
from ascii_video.models.frames import FrameSequence
from ascii_video.pipeline import FramePipeline, OpenCVFrameExtractor


logger = logging.getLogger(__name__)


CLEAR_SCREEN = "\033[2J\033[H"


# =============================================================================
# Helpers
# =============================================================================

def _build_pipeline(args: argparse.Namespace) -> FramePipeline:
    return FramePipeline(
        extractor=OpenCVFrameExtractor(),
        frame_rate_cap=args.fps_cap,
        max_frames=settings.pipeline.max_frames,
        batch_size=settings.pipeline.batch_size,
        batch_delay=settings.pipeline.batch_delay_seconds,
    )


def _convert(args: argparse.Namespace) -> FrameSequence:
    pipeline = _build_pipeline(args)

    def report(done: int) -> None:
        print(f"\rConverted {done} frames", end="", file=sys.stderr, flush=True)

    sequence = asyncio.run(pipeline.convert(
        args.video,
        target_width=args.width,
        detected_frame_rate=args.fps,
        detail_level=args.detail,
        max_frames=args.max_frames,
        on_progress=report,
        title=args.title,
    ))
    print(file=sys.stderr)
    return sequence


def play_frames(frames: List[str], frame_rate: float, loop: bool = False, out=None) -> None:
    """Print frames to a terminal at the given rate."""
    out = out or sys.stdout
    delay = 1.0 / frame_rate

    while True:
        for frame in frames:
            out.write(CLEAR_SCREEN + frame + "\n")
            out.flush()
            time.sleep(delay)
        if not loop:
            break


def _http_base(server: str) -> str:
    return server.rstrip("/")


def _ws_base(server: str) -> str:
    base = _http_base(server)
    if base.startswith("https://"):
        return "wss://" + base[len("https://"):]
    if base.startswith("http://"):
        return "ws://" + base[len("http://"):]
    return base


# =============================================================================
# Commands
# =============================================================================

def cmd_convert(args: argparse.Namespace) -> int:
    sequence = _convert(args)
    logger.info(f"Converted {sequence!r}")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump({
                "title": sequence.title,
                "frameRate": sequence.frame_rate,
                "frames": list(sequence.frames),
            }, f)
        print(f"Wrote {sequence.frame_count} frames to {args.output}", file=sys.stderr)

    if args.play:
        try:
            play_frames(list(sequence.frames), sequence.frame_rate, loop=args.loop)
        except KeyboardInterrupt:
            pass
    elif not args.output:
        print(sequence.frames[0])

    return 0


def cmd_share(args: argparse.Namespace) -> int:
    sequence = _convert(args)

    try:
        response = requests.post(
            f"{_http_base(args.server)}/api/stream",
            json={
                "frames": list(sequence.frames),
                "frameRate": sequence.frame_rate,
                "title": sequence.title,
            },
            timeout=args.timeout,
        )
        response.raise_for_status()
        links = response.json()
    except requests.RequestException as e:
        logger.error(f"Failed to share stream: {e}")
        print("Failed to share stream", file=sys.stderr)
        return 1

    print(f"Stream ID:    {links['streamId']}")
    print(f"Terminal:     {links['terminalUrl']} | bash")
    print(f"Browser:      {_http_base(args.server)}{links['webUrl']}")
    return 0


def cmd_play(args: argparse.Namespace) -> int:
    url = f"{_ws_base(args.server)}/ws/stream/{args.stream_id}"
    if not args.loop:
        url += "?loop=false"

    try:
        with ws_connect(url, max_size=10 * 1024 * 1024) as ws:
            for raw in ws:
                message = json.loads(raw)
                if message.get("type") == "meta":
                    logger.info(
                        f"Playing {message.get('title')!r}: "
                        f"{message.get('frameCount')} frames @ {message.get('frameRate')} fps"
                    )
                elif message.get("type") == "frame":
                    sys.stdout.write(CLEAR_SCREEN + message["frame"] + "\n")
                    sys.stdout.flush()
    except ConnectionClosed as e:
        if e.rcvd is not None and e.rcvd.code == 4404:
            print("Stream not found", file=sys.stderr)
            return 1
        logger.warning(f"Connection closed: {e}")
    except KeyboardInterrupt:
        pass
    except OSError as e:
        print(f"Cannot connect to {url}: {e}", file=sys.stderr)
        return 1

    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "ascii_video.main:app",
        host=args.host or settings.server.host,
        port=args.port or settings.server.port,
        reload=False,
    )
    return 0


# =============================================================================
# Argument Parsing
# =============================================================================

def _add_conversion_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("video", help="Path of the video file")
    parser.add_argument(
        "--width",
        type=int,
        default=settings.pipeline.default_width,
        help=f"Columns per frame (default: {settings.pipeline.default_width})",
    )
    parser.add_argument(
        "--detail",
        choices=[d.value for d in DetailLevel],
        default=settings.pipeline.default_detail_level.value,
        help="Glyph ramp detail level",
    )
    parser.add_argument(
        "--fps",
        type=float,
        default=None,
        help="Source frame rate (probed from the file if omitted)",
    )
    parser.add_argument(
        "--fps-cap",
        type=float,
        default=settings.pipeline.frame_rate_cap,
        help=f"Sampling rate ceiling (default: {settings.pipeline.frame_rate_cap})",
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=settings.pipeline.max_frames,
        help=f"Maximum frames to produce (default: {settings.pipeline.max_frames})",
    )
    parser.add_argument("--title", default=None, help="Title (default: file name)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ascii-video",
        description="Convert videos to ASCII art and share them as streams",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert a video locally")
    _add_conversion_args(convert)
    convert.add_argument("--output", "-o", help="Write frames as JSON to this file")
    convert.add_argument("--play", action="store_true", help="Play frames in the terminal")
    convert.add_argument("--loop", action="store_true", help="Loop playback")
    convert.set_defaults(func=cmd_convert)

    share = subparsers.add_parser("share", help="Convert and publish to a server")
    _add_conversion_args(share)
    share.add_argument(
        "--server",
        default=settings.server.public_base_url,
        help="Server base URL",
    )
    share.add_argument("--timeout", type=float, default=30.0, help="HTTP timeout")
    share.set_defaults(func=cmd_share)

    play = subparsers.add_parser("play", help="Play a shared stream")
    play.add_argument("stream_id", help="Stream id returned by share")
    play.add_argument(
        "--server",
        default=settings.server.public_base_url,
        help="Server base URL",
    )
    play.add_argument("--loop", action="store_true", help="Loop playback")
    play.set_defaults(func=cmd_play)

    serve = subparsers.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        return args.func(args)
    except AsciiVideoError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
