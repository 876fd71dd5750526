"""
Incremental framer for text/event-stream payloads delivered as raw bytes.

Bytes arrive in arbitrarily sized chunks from the network read loop. Every
complete record (terminated by a blank line in CR, LF or CRLF style) is decoded
and returned exactly once; the trailing partial record stays buffered until the
next chunk completes it.
"""
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import BufferOverflowError, RecordDecodeError
from .event import OpenAIEvent
from .newlines import DEFAULT_NEWLINE_STYLES, NewlineStyle

logger = logging.getLogger(__name__)

DECODE_ERROR_POLICIES = ("drop", "replace", "raise")

EventFactory = Callable[[str, Tuple[NewlineStyle, ...]], Optional[OpenAIEvent]]


class OpenAIStreamParser:
    """Incremental parser turning raw stream bytes into events.

    One instance per stream. Not safe for concurrent ``feed`` calls.
    """

    def __init__(
        self,
        newline_styles: Sequence[NewlineStyle] = DEFAULT_NEWLINE_STYLES,
        decode_errors: str = "drop",
        max_buffer_bytes: Optional[int] = None,
        event_factory: Optional[EventFactory] = None,
    ) -> None:
        """
        Args:
            newline_styles: Recognized line terminators, in tie-break order
            decode_errors: What to do with a record that is not valid UTF-8:
                "drop" (skip it), "replace" (emit with U+FFFD substitutions)
                or "raise" (raise RecordDecodeError)
            max_buffer_bytes: Upper bound for the pending partial record;
                None or 0 disables the check, negative values are rejected
            event_factory: Builds an event from a decoded record; returning
                None skips the record. Defaults to OpenAIEvent.from_event_string
        """
        if not newline_styles:
            raise ValueError("At least one newline style is required")
        if decode_errors not in DECODE_ERROR_POLICIES:
            raise ValueError(
                f"Unknown decode error policy {decode_errors!r}, expected one of {DECODE_ERROR_POLICIES}"
            )
        if max_buffer_bytes is not None and max_buffer_bytes < 0:
            raise ValueError(f"max_buffer_bytes must not be negative, got {max_buffer_bytes}")

        self._newline_styles: Tuple[NewlineStyle, ...] = tuple(newline_styles)
        self._delimiters: List[bytes] = [style.delimiter for style in self._newline_styles]
        self._decode_errors = decode_errors
        self._max_buffer_bytes = max_buffer_bytes or None
        self._event_factory: EventFactory = event_factory or OpenAIEvent.from_event_string
        self._buffer = bytearray()
        self.dropped_records = 0

    @property
    def newline_styles(self) -> Tuple[NewlineStyle, ...]:
        return self._newline_styles

    @property
    def buffered_bytes(self) -> int:
        return len(self._buffer)

    @property
    def current_buffer(self) -> Optional[str]:
        """Pending partial record as text, or None if it is not valid UTF-8."""
        try:
            return self._buffer.decode("utf-8")
        except UnicodeDecodeError:
            return None

    def reset(self) -> None:
        """Discard the pending partial record."""
        self._buffer.clear()

    def feed(self, data: Optional[bytes]) -> List[OpenAIEvent]:
        """Consume a raw chunk and return the events it completed."""
        if data is None:
            return []

        self._buffer += data

        try:
            records = self._extract_records_from_buffer()
        except RecordDecodeError as e:
            e.events = self._build_events(e.records)
            self._discard_oversized_buffer()
            raise

        events = self._build_events(records)
        size = self._discard_oversized_buffer()
        if size is not None:
            raise BufferOverflowError(size, self._max_buffer_bytes, events)
        return events

    def find_first_delimiter(self, start: int, end: int) -> Optional[Tuple[int, int]]:
        """Locate the leftmost event delimiter inside ``buffer[start:end]``.

        For a buffer holding ``id: event-id-1\\ndata: first\\n\\n`` this returns
        the position and length of the trailing ``\\n\\n``.

        Returns:
            (position, length) of the match, or None. When two delimiters start
            at the same offset the one listed first in ``newline_styles`` wins.
        """
        found: Optional[Tuple[int, int]] = None
        for delimiter in self._delimiters:
            # Nothing past an earlier match can win, so narrow the window
            limit = end if found is None else min(end, found[0] + len(delimiter) - 1)
            position = self._buffer.find(delimiter, start, limit)
            if position != -1 and (found is None or position < found[0]):
                found = (position, len(delimiter))
        return found

    def _extract_records_from_buffer(self) -> List[str]:
        records: List[str] = []
        cursor = 0
        end = len(self._buffer)

        try:
            while True:
                found = self.find_first_delimiter(cursor, end)
                if found is None:
                    break

                # Everything between the cursor and the delimiter is one record
                position, length = found
                raw = self._buffer[cursor:position]
                cursor = position + length

                text = self._decode_record(raw)
                if text is not None:
                    records.append(text)
        except RecordDecodeError as e:
            e.records = records
            raise
        finally:
            # The bad record stays consumed when decoding raises
            del self._buffer[:cursor]

        return records

    def _build_events(self, records: List[str]) -> List[OpenAIEvent]:
        events: List[OpenAIEvent] = []
        for text in records:
            event = self._event_factory(text, self._newline_styles)
            if event is not None:
                events.append(event)
        return events

    def _decode_record(self, raw: bytearray) -> Optional[str]:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            if self._decode_errors == "replace":
                return raw.decode("utf-8", "replace")
            if self._decode_errors == "raise":
                raise RecordDecodeError(bytes(raw))
            self.dropped_records += 1
            logger.debug(f"Dropped undecodable record of {len(raw)} bytes")
            return None

    def _discard_oversized_buffer(self) -> Optional[int]:
        """Clear the pending record if it is over the limit and return its size."""
        if self._max_buffer_bytes is None:
            return None

        size = len(self._buffer)
        if size <= self._max_buffer_bytes:
            return None

        logger.warning(
            f"Discarding pending record of {size} bytes (limit {self._max_buffer_bytes} bytes)"
        )
        self._buffer.clear()
        return size
