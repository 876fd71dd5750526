"""
Request-scoped trace files for troubleshooting the stream framer.

Each byte chunk received from the network is written with its sequence number
and size, followed by the events framed out of it, so a capture shows exactly
where record boundaries fell. Enabled via ``STREAM_TRACE_ENABLED`` or the
replay tool's ``--stream-trace``.
"""

from __future__ import annotations

import datetime
import re
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from openai_streamer import OpenAIEvent

TRUNCATION_MARKER = "[stream trace truncated]\n"


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class StreamTracer:
    """Writes one stream's chunks and events to ``<base_dir>/<time>_<route>_<id>.log``."""

    def __init__(self, request_id: str, route: str, base_dir: str, max_bytes: Optional[int]):
        self.request_id = request_id
        self.route = re.sub(r"[\s/]+", "-", route)

        directory = Path(base_dir)
        directory.mkdir(parents=True, exist_ok=True)
        self.path = directory / f"{_utc_now():%Y%m%dT%H%M%SZ}_{self.route}_{request_id}.log"
        self._file = self.path.open("w", encoding="utf-8")

        # Remaining byte budget; None when unbounded
        self._budget = max_bytes if max_bytes and max_bytes > 0 else None
        self._truncated = False
        self.chunk_count = 0
        self.event_count = 0

        self.log_note("stream tracer initialized")

    def log_raw_chunk(self, chunk: bytes) -> None:
        """Record a byte chunk as delivered; bytes that are not UTF-8 show as U+FFFD."""
        self.chunk_count += 1
        self._write(f"RAW #{self.chunk_count} {len(chunk)} bytes", chunk.decode("utf-8", "replace"))

    def log_event(self, event: OpenAIEvent) -> None:
        self.event_count += 1
        self._write(f"EVENT #{self.event_count}", repr(event))

    def log_note(self, note: str) -> None:
        self._write("NOTE", note)

    def log_error(self, message: str) -> None:
        self._write("ERROR", message)

    def close(self) -> None:
        if self._file.closed:
            return
        try:
            self.log_note(
                f"stream tracer closed after {self.chunk_count} chunk(s) and {self.event_count} event(s)"
            )
        finally:
            self._file.close()

    def _write(self, label: str, payload: str) -> None:
        if self._file.closed or self._truncated:
            return

        entry = f"[{_utc_now().isoformat(timespec='milliseconds')}] [{label}]\n{payload}\n"
        if self._budget is not None:
            size = len(entry.encode("utf-8"))
            if size > self._budget:
                # Whole entries only
                entry = TRUNCATION_MARKER
                self._truncated = True
            else:
                self._budget -= size

        self._file.write(entry)
        self._file.flush()


def maybe_create_stream_tracer(
    enabled: bool,
    request_id: str,
    route: str,
    base_dir: str,
    max_bytes: Optional[int],
) -> Optional[StreamTracer]:
    """Factory helper that respects the global enable flag."""
    if not enabled:
        return None
    return StreamTracer(request_id=request_id, route=route, base_dir=base_dir, max_bytes=max_bytes)
