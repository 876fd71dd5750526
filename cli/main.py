"""CLI entry point and argument parsing"""

import sys
import uuid
import argparse
from pathlib import Path
from typing import List, Optional

import settings
from openai_streamer import DECODE_ERROR_POLICIES, OpenAIStreamParser, StreamParserError
from stream_debug import maybe_create_stream_tracer
from utils.debug_console import create_debug_console, setup_debug_logging, setup_logging
from cli.replay import build_events_table, print_summary, replay_bytes


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openai-stream-replay",
        description="Replay a captured event stream through the incremental parser",
    )
    parser.add_argument("file", type=Path, help="Captured text/event-stream body")

    chunking = parser.add_mutually_exclusive_group()
    chunking.add_argument("--chunk-size", "-c", type=int, default=None, help="Fixed chunk size in bytes")
    chunking.add_argument(
        "--random-chunks",
        action="store_true",
        help="Use random chunk sizes (the default when --chunk-size is not given)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for random chunk sizes")
    parser.add_argument(
        "--decode-errors",
        choices=DECODE_ERROR_POLICIES,
        default=settings.STREAM_DECODE_ERROR_POLICY,
        help="What to do with records that are not valid UTF-8"
    )
    parser.add_argument(
        "--max-buffer-bytes",
        type=int,
        default=settings.STREAM_MAX_BUFFER_BYTES,
        help="Upper bound for a pending partial record (0 = unlimited)"
    )
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--stream-trace",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Write raw chunks and framed events to the stream trace directory"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI"""
    args = build_arg_parser().parse_args(argv)

    debug_logger = setup_debug_logging() if args.debug else None
    if not args.debug:
        setup_logging(settings.LOG_LEVEL)
    console = create_debug_console(debug_enabled=args.debug, debug_logger=debug_logger)

    # Config default -> --debug implies tracing -> explicit flag wins
    stream_trace_setting = settings.STREAM_TRACE_ENABLED
    if args.stream_trace is None:
        if args.debug:
            stream_trace_setting = True
    else:
        stream_trace_setting = args.stream_trace

    if not args.file.is_file():
        console.print(f"[red]ERROR:[/red] No such file: {args.file}")
        return 1

    if args.chunk_size is not None and args.chunk_size <= 0:
        console.print(f"[red]ERROR:[/red] --chunk-size must be positive, got {args.chunk_size}")
        return 1

    try:
        parser = OpenAIStreamParser(
            decode_errors=args.decode_errors,
            max_buffer_bytes=args.max_buffer_bytes,
        )
    except ValueError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        return 1

    tracer = maybe_create_stream_tracer(
        enabled=stream_trace_setting,
        request_id=uuid.uuid4().hex[:8],
        route="replay",
        base_dir=settings.STREAM_TRACE_DIR,
        max_bytes=settings.STREAM_TRACE_MAX_BYTES,
    )
    if tracer:
        console.print(f"[yellow]Stream tracing enabled - writing to {tracer.path}[/yellow]")

    try:
        events = replay_bytes(
            args.file.read_bytes(),
            parser,
            chunk_size=args.chunk_size,
            seed=args.seed,
            tracer=tracer,
        )
    except StreamParserError as e:
        if tracer:
            tracer.log_error(str(e))
        console.print(f"[red]Parser error:[/red] {e}")
        if e.events:
            console.print(build_events_table(e.events, args.file))
        return 1
    finally:
        if tracer:
            tracer.close()

    console.print(build_events_table(events, args.file))
    print_summary(console, parser, events)
    return 0


def run():
    """Console script wrapper"""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run()
