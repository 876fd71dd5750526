"""
Incremental Server-Sent Events framing for OpenAI streaming responses.
Turns raw byte chunks from the network into complete, decoded events.
"""

# Public API exports
from .newlines import NewlineStyle, DEFAULT_NEWLINE_STYLES
from .event import OpenAIEvent, DONE_SENTINEL
from .stream_parser import OpenAIStreamParser, DECODE_ERROR_POLICIES
from .errors import (
    StreamParserError,
    RecordDecodeError,
    BufferOverflowError,
    EventDecodeError,
)

__all__ = [
    # Newline conventions
    "NewlineStyle",
    "DEFAULT_NEWLINE_STYLES",

    # Events
    "OpenAIEvent",
    "DONE_SENTINEL",

    # Parser
    "OpenAIStreamParser",
    "DECODE_ERROR_POLICIES",

    # Errors
    "StreamParserError",
    "RecordDecodeError",
    "BufferOverflowError",
    "EventDecodeError",
]
