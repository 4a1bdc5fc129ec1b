"""
Command Line Tests
==================

Argument parsing, local conversion and terminal playback helpers.
"""

import io
import json

import pytest

from ascii_video import cli
from ascii_video.cli import CLEAR_SCREEN, build_parser, main, play_frames

from conftest import StubExtractor


@pytest.fixture
def stub_cli_extractor(monkeypatch):
    """Route the CLI pipeline through the stub extractor."""
    extractor = StubExtractor()
    monkeypatch.setattr(cli, "OpenCVFrameExtractor", lambda: extractor)
    return extractor


class TestParser:
    """Sub-commands and defaults."""

    def test_convert_defaults(self):
        args = build_parser().parse_args(["convert", "clip.mp4"])

        assert args.video == "clip.mp4"
        assert args.width == 200
        assert args.detail == "medium"
        assert args.fps is None
        assert args.fps_cap == 15.0
        assert args.max_frames == 1000
        assert args.play is False

    def test_convert_options(self):
        args = build_parser().parse_args([
            "convert", "clip.mp4", "--width", "80", "--detail", "ultra",
            "--fps", "29.97", "--max-frames", "50", "-o", "out.json",
        ])

        assert args.width == 80
        assert args.detail == "ultra"
        assert args.fps == 29.97
        assert args.max_frames == 50
        assert args.output == "out.json"

    def test_unknown_detail_level(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["convert", "clip.mp4", "--detail", "extreme"])

    def test_play(self):
        args = build_parser().parse_args(["play", "abc", "--server", "https://x.example"])

        assert args.stream_id == "abc"
        assert args.server == "https://x.example"
        assert args.loop is False

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestHelpers:
    """URL and playback helpers."""

    @pytest.mark.parametrize(
        "server,expected",
        [
            ("http://localhost:8000", "ws://localhost:8000"),
            ("https://ascii.example/", "wss://ascii.example"),
            ("ws://already", "ws://already"),
        ],
    )
    def test_ws_base(self, server, expected):
        assert cli._ws_base(server) == expected

    def test_play_frames(self, monkeypatch):
        monkeypatch.setattr(cli.time, "sleep", lambda seconds: None)
        out = io.StringIO()

        play_frames(["A\nB", "C\nD"], 24, out=out)

        assert out.getvalue() == f"{CLEAR_SCREEN}A\nB\n{CLEAR_SCREEN}C\nD\n"

    def test_play_frames_paced_by_rate(self, monkeypatch):
        delays = []
        monkeypatch.setattr(cli.time, "sleep", delays.append)

        play_frames(["a", "b"], 20, out=io.StringIO())

        assert delays == [0.05, 0.05]


class TestConvertCommand:
    """ascii-video convert"""

    def test_writes_json(self, stub_cli_extractor, video_file, tmp_path):
        output = tmp_path / "frames.json"

        code = main(["convert", str(video_file), "--width", "8", "-o", str(output)])

        assert code == 0
        payload = json.loads(output.read_text(encoding="utf-8"))
        assert payload["title"] == "clip"
        assert payload["frameRate"] == 15.0
        assert len(payload["frames"]) == 12
        assert stub_cli_extractor.calls[0]["width"] == 8

    def test_prints_first_frame(self, stub_cli_extractor, video_file, capsys):
        code = main(["convert", str(video_file), "--width", "8", "--detail", "low"])

        assert code == 0
        first = capsys.readouterr().out.rstrip("\n")
        assert first == "\n".join([" " * 8] * 6)

    def test_fps_cap_option(self, stub_cli_extractor, video_file, tmp_path):
        output = tmp_path / "frames.json"

        main(["convert", str(video_file), "--width", "8", "--fps-cap", "5", "-o", str(output)])

        assert json.loads(output.read_text(encoding="utf-8"))["frameRate"] == 5.0

    def test_missing_video_fails(self, stub_cli_extractor, tmp_path, capsys):
        code = main(["convert", str(tmp_path / "missing.mp4")])

        assert code == 1
        assert "Error:" in capsys.readouterr().err
