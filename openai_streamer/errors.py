"""
Exceptions raised by the stream parser and event helpers.
"""
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .event import OpenAIEvent


class StreamParserError(Exception):
    """Base class for parser failures.

    Carries the events that were already framed during the failing ``feed``
    call so the caller can still deliver them.
    """

    def __init__(self, message: str, events: Optional[List["OpenAIEvent"]] = None):
        super().__init__(message)
        self.events: List["OpenAIEvent"] = list(events or [])


class RecordDecodeError(StreamParserError):
    """A framed record is not valid UTF-8 (``decode_errors="raise"`` only)."""

    def __init__(self, raw: bytes, events: Optional[List["OpenAIEvent"]] = None):
        super().__init__(f"Record of {len(raw)} bytes is not valid UTF-8", events)
        self.raw = raw
        # Decoded records framed before the bad one, filled in by the parser
        self.records: List[str] = []


class BufferOverflowError(StreamParserError):
    """The pending partial record grew past ``max_buffer_bytes``."""

    def __init__(self, size: int, limit: int, events: Optional[List["OpenAIEvent"]] = None):
        super().__init__(f"Pending record of {size} bytes exceeds limit of {limit} bytes", events)
        self.size = size
        self.limit = limit


class EventDecodeError(ValueError):
    """Event data is not a valid JSON document."""
