"""
Field parser turning one framed record into a typed event.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from .errors import EventDecodeError
from .newlines import DEFAULT_NEWLINE_STYLES, NewlineStyle

DONE_SENTINEL = "[DONE]"


def _line_pattern(newline_styles: Iterable[NewlineStyle]) -> "re.Pattern[str]":
    # Longest terminator first so "\r\n" is never read as "\r" + "\n"
    styles = sorted(newline_styles, key=lambda style: len(style.value), reverse=True)
    return re.compile("|".join(re.escape(style.value) for style in styles))


@dataclass
class OpenAIEvent:
    """Represents a parsed Server-Sent Events record."""
    id: Optional[str] = None
    event: Optional[str] = None
    data: str = ""
    retry: Optional[int] = None

    @classmethod
    def from_event_string(
        cls,
        event_string: str,
        newline_styles: Iterable[NewlineStyle] = DEFAULT_NEWLINE_STYLES,
    ) -> "OpenAIEvent":
        """Build an event from a delimiter-stripped record.

        Args:
            event_string: Decoded record text, without its trailing blank line
            newline_styles: Line terminators used to split the record into fields

        Returns:
            The parsed event. Unknown fields and comment lines are ignored.
        """
        event = cls()
        data_lines: List[str] = []

        for line in _line_pattern(newline_styles).split(event_string):
            if not line or line.startswith(":"):
                continue

            field, sep, value = line.partition(":")
            if sep and value.startswith(" "):
                value = value[1:]

            if field == "id":
                event.id = value
            elif field == "event":
                event.event = value
            elif field == "data":
                data_lines.append(value)
            elif field == "retry":
                if value.isascii() and value.isdigit():
                    event.retry = int(value)

        event.data = "\n".join(data_lines)
        return event

    @property
    def is_done(self) -> bool:
        """True for the ``data: [DONE]`` terminator sent by OpenAI streams."""
        return self.data == DONE_SENTINEL

    def json(self) -> Any:
        """Decode the data payload as JSON."""
        try:
            return json.loads(self.data)
        except json.JSONDecodeError as e:
            raise EventDecodeError(f"Event data is not valid JSON: {e}") from e
