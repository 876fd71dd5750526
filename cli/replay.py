"""Replay a captured event stream through the parser"""

import random
from pathlib import Path
from typing import Iterator, List, Optional

from rich.console import Console
from rich.table import Table

from openai_streamer import OpenAIEvent, OpenAIStreamParser
from stream_debug import StreamTracer


def split_chunks(
    data: bytes,
    chunk_size: Optional[int] = None,
    seed: Optional[int] = None,
    max_random_size: int = 64,
) -> Iterator[bytes]:
    """Split bytes the way a network read loop might deliver them

    Args:
        data: Full captured stream
        chunk_size: Fixed chunk size; when None, sizes are random
        seed: Seed for random chunk sizes, for reproducible runs
        max_random_size: Largest random chunk size

    Yields:
        Non-empty chunks that concatenate back to ``data``
    """
    if chunk_size is not None and chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    rng = random.Random(seed)
    offset = 0
    while offset < len(data):
        size = chunk_size if chunk_size is not None else rng.randint(1, max_random_size)
        yield data[offset:offset + size]
        offset += size


def replay_bytes(
    data: bytes,
    parser: OpenAIStreamParser,
    chunk_size: Optional[int] = None,
    seed: Optional[int] = None,
    tracer: Optional[StreamTracer] = None,
) -> List[OpenAIEvent]:
    """Feed ``data`` chunk by chunk and collect every framed event"""
    events: List[OpenAIEvent] = []
    for chunk in split_chunks(data, chunk_size=chunk_size, seed=seed):
        if tracer:
            tracer.log_raw_chunk(chunk)
        for event in parser.feed(chunk):
            if tracer:
                tracer.log_event(event)
            events.append(event)
    return events


def build_events_table(events: List[OpenAIEvent], source: Path) -> Table:
    """Render framed events as a rich table"""
    table = Table(title=f"Events in {source.name}")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("id")
    table.add_column("event", style="magenta")
    table.add_column("data", overflow="fold")

    for index, event in enumerate(events, start=1):
        table.add_row(str(index), event.id or "", event.event or "", event.data)
    return table


def print_summary(console: Console, parser: OpenAIStreamParser, events: List[OpenAIEvent]) -> None:
    console.print(f"[green]{len(events)} event(s) framed[/green]")
    if parser.dropped_records:
        console.print(f"[yellow]{parser.dropped_records} undecodable record(s) dropped[/yellow]")
    if parser.buffered_bytes:
        console.print(f"[yellow]{parser.buffered_bytes} byte(s) left in an unterminated record[/yellow]")
