"""Thin CLI entry point — builds a Manifest and calls the engine."""

import argparse
import json
import logging
import sys
from pathlib import Path

from viralclip.editors.narration import render_narrated_video
from viralclip.engine import process
from viralclip.errors import PipelineError
from viralclip.ingest import download_video
from viralclip.manifest import Manifest, SegmentRules, SubtitleConfig, load_manifest, parse_segment
from viralclip.models import Orientation


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_segments(path: Path | None) -> list:
    if path is None:
        return []
    return [parse_segment(s) for s in json.loads(path.read_text())]


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="viralclip",
        description="viralclip — cut viral clips with burned-in karaoke subtitles.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    proc = sub.add_parser("process", help="Cut clips from a video file")
    proc.add_argument("video", nargs="?", type=Path, help="Input video file")
    proc.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    proc.add_argument("--url", help="Download the input video from a supported platform URL")
    proc.add_argument("--output-dir", "-o", type=Path, default=Path("processed"), help="Output directory")
    proc.add_argument("--segments", type=Path, help="JSON file with proposed segments")
    proc.add_argument("--format", choices=["vertical", "horizontal"], default="vertical", help="Output orientation")
    proc.add_argument("--language", default="pt", help="Speech language code")
    proc.add_argument("--no-subtitles", action="store_true", help="Skip subtitle generation")

    render = sub.add_parser("render", help="Render a narrated video from text")
    render.add_argument("text", help="Narration text")
    render.add_argument("--format", choices=["vertical", "horizontal"], default="vertical", help="Output orientation")
    render.add_argument("--output-dir", "-o", type=Path, default=Path("processed"), help="Output directory")
    render.add_argument("--background", default="#0F0F10", help="Background colour")

    serve = sub.add_parser("serve", help="Launch the web API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from viralclip.web import create_app
        app = create_app()
        print(f"viralclip API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    try:
        if args.command == "render":
            narration = render_narrated_video(
                args.text, Orientation(args.format), args.output_dir, background=args.background
            )
            print(f"Done! Output: {narration.output_path} ({narration.duration:.1f}s)")
            return

        if args.manifest:
            m = load_manifest(args.manifest)
        elif args.video or args.url:
            video = args.video or download_video(args.url, args.output_dir)
            m = Manifest(
                input=video,
                output_dir=args.output_dir,
                orientation=Orientation(args.format),
                language=args.language,
                segments=_load_segments(args.segments),
                segment_rules=SegmentRules(),
                subtitles=SubtitleConfig(enabled=not args.no_subtitles),
            )
        else:
            print("Error: provide a VIDEO argument, --url or --manifest.", file=sys.stderr)
            sys.exit(1)

        def on_progress(stage: str, frac: float) -> None:
            print(f"  [{frac:3.0%}] {stage}")

        result = process(m, on_progress=on_progress)
    except PipelineError as e:
        print(f"Error ({e.category}): {e}", file=sys.stderr)
        sys.exit(1)

    print()
    print(f"Done! Source duration: {result.source_duration:.1f}s")
    for artifact in result.artifacts:
        seg = artifact.segment
        print(f"  {artifact.output_path}  [{seg.start:.1f}s - {seg.end:.1f}s]  subtitles: {artifact.subtitle_source}")
