#!/usr/bin/env python3
"""
Service Smoke Test Script
=========================

Standalone script to exercise a running ASCII video service end to end.

This script:
    1. Shares a synthetic stream through POST /api/stream
    2. Reads it back through GET /api/stream and /api/terminal/<id>
    3. Consumes the WebSocket frame feed for a configurable duration
    4. Reports a final summary

Prerequisites:
    - The service must be running at the configured URL
    - Install dependencies: pip install -e .

Usage:
    python scripts/smoke_test.py --duration 10
    python scripts/smoke_test.py --server http://localhost:8000 --fps 12
"""

import argparse
import asyncio
import json
import logging
import os
import sys
import time

import requests
import websockets


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def synthetic_frames(count: int, width: int = 40, height: int = 12) -> list:
    """A bar sweeping left to right, one text frame per step."""
    frames = []
    for index in range(count):
        column = index % width
        row = "".join("#" if c == column else "." for c in range(width))
        frames.append("\n".join([row] * height))
    return frames


def share_stream(server: str, frame_count: int, fps: float) -> str:
    response = requests.post(
        f"{server}/api/stream",
        json={
            "frames": synthetic_frames(frame_count),
            "frameRate": fps,
            "title": "Smoke Test",
        },
        timeout=10,
    )
    response.raise_for_status()
    links = response.json()
    logger.info(f"Shared stream {links['streamId']}")
    logger.info(f"  Terminal: {links['terminalUrl']} | bash")
    logger.info(f"  Browser:  {server}{links['webUrl']}")
    return links["streamId"]


def check_metadata(server: str, stream_id: str, frame_count: int) -> bool:
    metadata = requests.get(
        f"{server}/api/stream", params={"id": stream_id}, timeout=10
    ).json()
    logger.info(f"Metadata: {metadata}")

    script = requests.get(f"{server}/api/terminal/{stream_id}", timeout=10)
    logger.info(
        f"Terminal script: status={script.status_code}, "
        f"bytes={len(script.content)}, "
        f"disposition={script.headers.get('Content-Disposition')}"
    )

    return (
        metadata.get("frameCount") == frame_count
        and script.status_code == 200
        and script.text.startswith("#!/bin/bash")
    )


async def consume_feed(ws_url: str, duration: float) -> dict:
    """
    Read the frame feed for a fixed duration.

    Args:
        ws_url: WebSocket URL of the stream feed
        duration: Seconds to keep reading

    Returns:
        Counters for the final summary
    """
    frames_received = 0
    out_of_order = 0
    last_index = None
    start_time = time.time()

    async with websockets.connect(ws_url, max_size=10 * 1024 * 1024) as ws:
        while time.time() - start_time < duration:
            try:
                raw = await asyncio.wait_for(ws.recv(), timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("No message for 5 seconds")
                break

            message = json.loads(raw)
            if message.get("type") != "frame":
                logger.info(f"Feed metadata: {message}")
                continue

            frames_received += 1
            index = message["index"]
            if last_index is not None and index != last_index + 1 and index != 0:
                out_of_order += 1
            last_index = index

    elapsed = time.time() - start_time
    return {
        "frames_received": frames_received,
        "out_of_order": out_of_order,
        "avg_fps": frames_received / elapsed if elapsed > 0 else 0,
    }


def main():
    parser = argparse.ArgumentParser(
        description="End-to-end smoke test for the ASCII video service"
    )
    parser.add_argument(
        "--server",
        type=str,
        default=os.environ.get("ASCII_VIDEO_BASE_URL", "http://localhost:8000"),
        help="Base URL of the service",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=5.0,
        help="Seconds to consume the frame feed (default: 5)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=40,
        help="Frames in the synthetic stream (default: 40)",
    )
    parser.add_argument(
        "--fps",
        type=float,
        default=12.0,
        help="Playback rate of the synthetic stream (default: 12)",
    )

    args = parser.parse_args()
    server = args.server.rstrip("/")

    logger.info("=" * 60)
    logger.info(f"Smoke test against {server}")
    logger.info("=" * 60)

    try:
        stream_id = share_stream(server, args.frames, args.fps)
        metadata_ok = check_metadata(server, stream_id, args.frames)
    except requests.RequestException as e:
        logger.error(f"HTTP request failed: {e}")
        sys.exit(1)

    ws_url = server.replace("https://", "wss://", 1).replace("http://", "ws://", 1)
    result = asyncio.run(consume_feed(f"{ws_url}/ws/stream/{stream_id}", args.duration))

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Metadata and script: {'ok' if metadata_ok else 'FAILED'}")
    logger.info(f"Frames received: {result['frames_received']}")
    logger.info(f"Average FPS: {result['avg_fps']:.1f} (target {args.fps})")
    logger.info(f"Out-of-order frames: {result['out_of_order']}")
    logger.info("=" * 60)

    passed = metadata_ok and result["frames_received"] > 0 and result["out_of_order"] == 0
    sys.exit(0 if passed else 1)


if __name__ == "__main__":
    main()
