"""
Newline conventions recognized by the stream framer.

Events are separated by an empty line. End of line can be:
    \\r   = CR (Carriage Return) → classic Mac OS
    \\n   = LF (Line Feed) → Unix / macOS
    \\r\\n = CR + LF → Windows
"""
from enum import Enum
from typing import Tuple


class NewlineStyle(Enum):
    """A single line terminator."""

    CRLF = "\r\n"
    LF = "\n"
    CR = "\r"

    @property
    def delimiter(self) -> bytes:
        """Doubled form of the newline, i.e. the blank line ending an event."""
        return (self.value * 2).encode("utf-8")


# Order matters: it is the tie-break order of the delimiter scan, and the
# split order of the field parser (CRLF must win over its CR and LF halves).
DEFAULT_NEWLINE_STYLES: Tuple[NewlineStyle, ...] = (
    NewlineStyle.CRLF,
    NewlineStyle.LF,
    NewlineStyle.CR,
)
