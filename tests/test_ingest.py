"""Tests for URL ingestion via yt-dlp (run_tool is mocked)."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from viralclip.errors import DownloadFailed, InvalidInput, ToolFailed, ToolNotInstalled, ToolTimeout
from viralclip.ingest import (
    DOWNLOAD_FORMATS,
    build_download_args,
    download_video,
    is_supported_url,
)
from viralclip.toolpaths import YTDLP

URL = "https://www.youtube.com/watch?v=abc123"


def _saves(content=b"video", ext="mp4", report=True):
    """side_effect that fills in the -o template and prints the path like yt-dlp."""

    def _run(tool, args, **kwargs):
        template = args[args.index("-o") + 1]
        path = Path(template.replace("%(title)s", "talk").replace("%(ext)s", ext))
        path.write_bytes(content)
        stdout = f"{path}\n" if report else ""
        return MagicMock(returncode=0, stdout=stdout, stderr="")

    return _run


class TestIsSupportedUrl:
    @pytest.mark.parametrize("url", [
        URL,
        "https://youtu.be/abc123",
        "https://m.youtube.com/shorts/abc123",
        "https://www.tiktok.com/@user/video/1",
        "https://www.instagram.com/reel/xyz/",
        "https://x.com/user/status/1",
        "http://vimeo.com/123",
    ])
    def test_supported(self, url):
        assert is_supported_url(url)

    @pytest.mark.parametrize("url", [
        "",
        "ftp://youtube.com/video",
        "https://example.com/video.mp4",
        "https://notyoutube.com/watch?v=1",
        "https://youtube.com.evil.net/watch",
        "/local/file.mp4",
    ])
    def test_unsupported(self, url):
        assert not is_supported_url(url)


class TestBuildDownloadArgs:
    def test_merge_container(self):
        args = build_download_args(URL, "bv*+ba/b", "mkv", "/out/x.%(ext)s")
        assert args[args.index("-f") + 1] == "bv*+ba/b"
        assert args[args.index("--merge-output-format") + 1] == "mkv"
        assert "--no-playlist" in args
        assert args[-1] == URL

    def test_no_merge(self):
        args = build_download_args(URL, "best", None, "/out/x.%(ext)s")
        assert "--merge-output-format" not in args


class TestDownloadVideo:
    @patch("viralclip.ingest.ffutil.run_tool")
    def test_first_format_succeeds(self, mock_run, tmp_path):
        mock_run.side_effect = _saves()
        path = download_video(URL, tmp_path)

        assert path.parent == tmp_path
        assert path.name.startswith("download_")
        assert path.name.endswith("talk.mp4")
        assert mock_run.call_count == 1
        tool, args = mock_run.call_args[0]
        assert tool is YTDLP
        assert args[args.index("-f") + 1] == DOWNLOAD_FORMATS[0][0]

    @patch("viralclip.ingest.ffutil.run_tool")
    def test_falls_back_to_next_format(self, mock_run, tmp_path):
        save = _saves(ext="mkv")

        def _run(tool, args, **kwargs):
            if mock_run.call_count == 1:
                raise ToolFailed("yt-dlp", 1, "Requested format is not available")
            return save(tool, args, **kwargs)

        mock_run.side_effect = _run
        path = download_video(URL, tmp_path)
        assert path.suffix == ".mkv"
        assert mock_run.call_count == 2
        second = mock_run.call_args_list[1][0][1]
        assert second[second.index("-f") + 1] == DOWNLOAD_FORMATS[1][0]

    @patch("viralclip.ingest.ffutil.run_tool")
    def test_timeout_moves_to_next_format(self, mock_run, tmp_path):
        calls = []

        def _run(tool, args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise ToolTimeout("yt-dlp timed out after 180s")
            return _saves()(tool, args, **kwargs)

        mock_run.side_effect = _run
        assert download_video(URL, tmp_path).exists()
        assert len(calls) == 2

    @patch("viralclip.ingest.ffutil.run_tool")
    def test_finds_file_by_prefix_when_path_not_printed(self, mock_run, tmp_path):
        mock_run.side_effect = _saves(report=False)
        path = download_video(URL, tmp_path)
        assert path.name.endswith("talk.mp4")

    @patch("viralclip.ingest.ffutil.run_tool")
    def test_all_formats_fail(self, mock_run, tmp_path):
        mock_run.side_effect = ToolFailed("yt-dlp", 1, "HTTP Error 403: Forbidden")
        with pytest.raises(DownloadFailed, match="403") as exc:
            download_video(URL, tmp_path)
        assert exc.value.category == "download_failed"
        assert mock_run.call_count == len(DOWNLOAD_FORMATS)

    @patch("viralclip.ingest.ffutil.run_tool")
    def test_no_file_produced(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        with pytest.raises(DownloadFailed):
            download_video(URL, tmp_path)

    @patch("viralclip.ingest.ffutil.run_tool")
    def test_too_large_is_removed(self, mock_run, tmp_path):
        mock_run.side_effect = _saves(content=b"x" * 2048)
        with pytest.raises(InvalidInput, match="too large"):
            download_video(URL, tmp_path, max_bytes=1024)
        assert list(tmp_path.iterdir()) == []

    @patch("viralclip.ingest.ffutil.run_tool")
    def test_not_installed_propagates(self, mock_run, tmp_path):
        mock_run.side_effect = ToolNotInstalled("yt-dlp", YTDLP.install_hint)
        with pytest.raises(ToolNotInstalled):
            download_video(URL, tmp_path)
        assert mock_run.call_count == 1

    @patch("viralclip.ingest.ffutil.run_tool")
    def test_unsupported_url(self, mock_run, tmp_path):
        with pytest.raises(InvalidInput, match="Unsupported"):
            download_video("https://example.com/v.mp4", tmp_path)
        mock_run.assert_not_called()
