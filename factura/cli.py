"""
Factura CLI - Command-line interface for the capture engine.

Usage:
    factura dictate                   Dictate an invoice line by line
    factura scan <image_file>         Extract a receipt from a photo
    factura questions [--modality]    Show the guided questions
    factura serve [--host --port]     Run the HTTP API
"""

import argparse
import logging
import sys

from .capture import CaptureAborted, ImageFileAdapter, StdinDictationAdapter
from .config import load_config
from .engine_core.errors import ConfigurationError
from .engine_core.questions import Modality
from .engine_core.reducer import Reducer
from .engine_core.state import Phase, Session
from .export import dumps_record
from .session import CaptureLoop


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Factura - Incremental invoice capture engine",
        prog="factura",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("dictate", help="Dictate an invoice, one answer per line")

    scan_parser = subparsers.add_parser("scan", help="Extract a receipt from a photo")
    scan_parser.add_argument("image_file", help="Path to the receipt image")

    questions_parser = subparsers.add_parser("questions", help="Show the guided questions")
    questions_parser.add_argument(
        "--modality",
        choices=[m.value for m in Modality],
        default=Modality.DICTATION.value,
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "dictate":
        cmd_dictate(args)
    elif args.command == "scan":
        cmd_scan(args)
    elif args.command == "questions":
        cmd_questions(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _build_loop(modality: Modality) -> CaptureLoop:
    from .extraction import GeminiExtractionClient

    config = load_config()
    try:
        client = GeminiExtractionClient(config.gemini)
        questions = config.engine.questions(modality)
    except ConfigurationError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    return CaptureLoop(
        session=Session.create(questions),
        client=client,
        reducer=Reducer(preserve_record_on_reset=config.engine.preserve_record_on_reset),
    )


def cmd_dictate(args):
    """Interactive dictation through the guided questions."""
    loop = _build_loop(Modality.DICTATION)
    adapter = StdinDictationAdapter(sys.stdin)

    while loop.session.phase != Phase.FINALIZED:
        phase = loop.session.phase

        if phase == Phase.ERROR:
            print(f"\nError: {loop.session.last_error}")
            sys.exit(1)

        if phase == Phase.REVIEW:
            print("\nRecord so far:")
            print(dumps_record(loop.session.record))
            print("\nType 'ok' to confirm, or dictate a correction:")
        else:
            print(f"\n{loop.session.current_question}")

        # The line is read before START so "ok" can confirm from REVIEW
        capture_event = adapter.capture()
        if isinstance(capture_event, CaptureAborted):
            print("\nCancelled.")
            sys.exit(1)

        if phase == Phase.REVIEW and capture_event.artifact.text.strip().lower() == "ok":
            loop.confirm()
            break

        loop.start()
        result = loop.submit(capture_event)
        for change in result.changes:
            print(f"  - {change}")

    print("\nFinal record:")
    print(dumps_record(loop.session.record))


def cmd_scan(args):
    """Extract a receipt from an image file."""
    loop = _build_loop(Modality.RECEIPT)

    print(f"Analyzing {args.image_file}...")
    loop.start()
    result = loop.capture_from(ImageFileAdapter(args.image_file))

    if result.phase == Phase.ERROR:
        print(f"Error: {result.session.last_error}")
        sys.exit(1)

    if result.phase == Phase.REVIEW:
        loop.confirm()

    print(dumps_record(loop.session.record))


def cmd_questions(args):
    """Print the guided questions for a modality."""
    config = load_config()
    try:
        questions = config.engine.questions(Modality(args.modality))
    except ConfigurationError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    for i, question in enumerate(questions, start=1):
        print(f"{i}. {question}")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "factura.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
    )


if __name__ == "__main__":
    main()
