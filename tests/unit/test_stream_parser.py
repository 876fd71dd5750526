"""Tests for the incremental stream parser"""
import random
from typing import Iterable, List

import pytest

from openai_streamer import (
    BufferOverflowError,
    NewlineStyle,
    OpenAIEvent,
    OpenAIStreamParser,
    RecordDecodeError,
)


def raw_records(parser: OpenAIStreamParser, chunks: Iterable[bytes]) -> List[str]:
    records: List[str] = []
    for chunk in chunks:
        records.extend(event.data for event in parser.feed(chunk))
    return records


def make_raw_parser(**kwargs) -> OpenAIStreamParser:
    return OpenAIStreamParser(event_factory=lambda text, styles: OpenAIEvent(data=text), **kwargs)


STREAM = (
    b"id: 1\nevent: message\ndata: {\"delta\": \"Hel\"}\n\n"
    b"id: 2\ndata: {\"delta\": \"lo \xc3\xa9t\xc3\xa9\"}\n\n"
    b": keep-alive\n\n"
    b"data: [DONE]\n\n"
)


@pytest.mark.unit
class TestFeed:
    """Feeding bytes and getting framed records back"""

    def test_partial_record_is_retained(self, raw_parser):
        """Test that a record is only emitted once its delimiter arrives"""
        assert raw_parser.feed(b"id: 1\ndata: part1") == []
        assert raw_parser.buffered_bytes == len(b"id: 1\ndata: part1")

        events = raw_parser.feed(b"\n\n")
        assert [e.data for e in events] == ["id: 1\ndata: part1"]
        assert raw_parser.buffered_bytes == 0

    def test_multiple_events_in_one_chunk(self, raw_parser):
        """Test that every complete record in a chunk is emitted in order"""
        events = raw_parser.feed(b"data: a\n\ndata: b\n\n")

        assert [e.data for e in events] == ["data: a", "data: b"]

    def test_mixed_newline_styles(self, raw_parser):
        """Test that each delimiter style is recognized independently"""
        events = raw_parser.feed(b"data: a\r\n\r\ndata: b\n\ndata: c\r\r")

        assert [e.data for e in events] == ["data: a", "data: b", "data: c"]

    def test_empty_records(self, raw_parser):
        """Test that back-to-back delimiters produce empty records"""
        events = raw_parser.feed(b"\n\n\n\n")

        assert [e.data for e in events] == ["", ""]

    def test_no_delimiter_no_emission(self, raw_parser):
        """Test that data accumulates until the delimiter is complete"""
        assert raw_parser.feed(b"data: x\n") == []
        assert raw_parser.feed(b"data: y") == []

        events = raw_parser.feed(b"\n\n")
        assert [e.data for e in events] == ["data: x\ndata: y"]

    def test_absent_input(self, raw_parser):
        """Test that None is a no-op"""
        raw_parser.feed(b"data: pending")

        assert raw_parser.feed(None) == []
        assert raw_parser.current_buffer == "data: pending"

    def test_empty_chunk(self, raw_parser):
        """Test feeding an empty byte string"""
        assert raw_parser.feed(b"") == []
        assert raw_parser.buffered_bytes == 0

    def test_half_crlf_delimiter_at_tail(self, raw_parser):
        """Test that an incomplete CRLF delimiter stays buffered"""
        assert raw_parser.feed(b"data: a\r\n\r") == []
        assert raw_parser.current_buffer == "data: a\r\n\r"

        events = raw_parser.feed(b"\ndata: b")
        assert [e.data for e in events] == ["data: a"]
        assert raw_parser.current_buffer == "data: b"

    def test_leftmost_delimiter_wins(self, raw_parser):
        """Test that the earliest delimiter is used regardless of style order"""
        events = raw_parser.feed(b"a\r\rb\r\n\r\n")

        assert [e.data for e in events] == ["a", "b"]

    def test_multibyte_character_split_across_chunks(self, parser):
        """Test that UTF-8 sequences split between chunks decode once complete"""
        assert parser.feed(b"data: \xe2\x82") == []
        assert parser.current_buffer is None

        events = parser.feed(b"\xac\n\n")
        assert len(events) == 1
        assert events[0].data == "€"

    def test_default_factory_parses_fields(self, parser):
        """Test that records are turned into OpenAIEvent objects"""
        events = parser.feed(b"id: 7\nevent: delta\ndata: hi\n\n")

        assert events == [OpenAIEvent(id="7", event="delta", data="hi")]

    def test_factory_returning_none_skips_record(self):
        """Test that a factory can filter records out"""
        parser = OpenAIStreamParser(
            event_factory=lambda text, styles: None if text.startswith(":") else OpenAIEvent(data=text)
        )

        events = parser.feed(b": ping\n\ndata: x\n\n")
        assert [e.data for e in events] == ["data: x"]

    def test_factory_receives_newline_styles(self):
        """Test that the field parser is given the recognized styles"""
        seen = []
        parser = OpenAIStreamParser(
            newline_styles=(NewlineStyle.LF,),
            event_factory=lambda text, styles: seen.append(styles) or OpenAIEvent(data=text),
        )

        parser.feed(b"data: x\n\n")
        assert seen == [(NewlineStyle.LF,)]

    def test_reset_discards_partial_record(self, parser):
        """Test that reset drops the pending record"""
        parser.feed(b"data: stale")
        parser.reset()

        events = parser.feed(b"data: new\n\n")
        assert [e.data for e in events] == ["new"]


@pytest.mark.unit
class TestChunking:
    """Framing must not depend on how the bytes were split"""

    def test_every_fixed_chunk_size(self):
        """Test that all fixed chunk sizes give the same events as one feed"""
        expected = OpenAIStreamParser().feed(STREAM)
        assert len(expected) == 4

        for size in range(1, len(STREAM) + 1):
            chunks = [STREAM[i:i + size] for i in range(0, len(STREAM), size)]
            parser = OpenAIStreamParser()
            events = [event for chunk in chunks for event in parser.feed(chunk)]
            assert events == expected, f"chunk size {size}"
            assert parser.buffered_bytes == 0

    @pytest.mark.parametrize("seed", range(20))
    def test_random_splits(self, seed):
        """Test random split points over a CRLF stream"""
        stream = STREAM.replace(b"\n", b"\r\n")
        expected = raw_records(make_raw_parser(), [stream])

        rng = random.Random(seed)
        cuts = sorted(rng.sample(range(1, len(stream)), 12))
        chunks = [stream[a:b] for a, b in zip([0] + cuts, cuts + [len(stream)])]

        assert raw_records(make_raw_parser(), chunks) == expected

    def test_order_is_preserved(self):
        """Test that events come out in delimiter order"""
        stream = b"".join(b"data: %d\n\n" % i for i in range(50))
        chunks = [stream[i:i + 7] for i in range(0, len(stream), 7)]

        events = []
        parser = OpenAIStreamParser()
        for chunk in chunks:
            events.extend(parser.feed(chunk))

        assert [e.data for e in events] == [str(i) for i in range(50)]


@pytest.mark.unit
class TestDelimiterScan:
    """Direct tests for find_first_delimiter"""

    def _parser_with_buffer(self, data: bytes) -> OpenAIStreamParser:
        parser = OpenAIStreamParser()
        parser._buffer.extend(data)
        return parser

    def test_returns_leftmost_match(self):
        """Test position and length of the earliest delimiter"""
        data = b"a\r\rb\r\n\r\n"
        parser = self._parser_with_buffer(data)

        assert parser.find_first_delimiter(0, len(data)) == (1, 2)
        assert parser.find_first_delimiter(3, len(data)) == (4, 4)

    def test_respects_search_window(self):
        """Test that matches must fit entirely inside the range"""
        data = b"a\r\rb\n\n"
        parser = self._parser_with_buffer(data)

        assert parser.find_first_delimiter(0, 2) is None
        assert parser.find_first_delimiter(0, 3) == (1, 2)
        assert parser.find_first_delimiter(2, len(data)) == (4, 2)

    def test_no_match(self):
        """Test that single newlines are not delimiters"""
        data = b"id: 1\ndata: x\r\ndata: y\r"
        parser = self._parser_with_buffer(data)

        assert parser.find_first_delimiter(0, len(data)) is None

    def test_does_not_mutate_buffer(self):
        """Test that scanning leaves the buffer untouched"""
        data = b"data: a\n\ndata: b"
        parser = self._parser_with_buffer(data)

        parser.find_first_delimiter(0, len(data))
        assert parser.buffered_bytes == len(data)
        assert parser.current_buffer == data.decode()

    def test_only_configured_styles_are_recognized(self):
        """Test a parser restricted to LF delimiters"""
        parser = make_raw_parser(newline_styles=(NewlineStyle.LF,))

        assert parser.feed(b"data: a\r\n\r\n") == []
        assert [e.data for e in parser.feed(b"\n\n")] == ["data: a\r\n\r"]


@pytest.mark.unit
class TestDecodeErrors:
    """Handling of records that are not valid UTF-8"""

    def test_malformed_record_is_dropped(self, raw_parser):
        """Test that a bad record is consumed without output"""
        events = raw_parser.feed(b"data: \xff\xfe\n\ndata: ok\n\n")

        assert [e.data for e in events] == ["data: ok"]
        assert raw_parser.dropped_records == 1
        assert raw_parser.buffered_bytes == 0

    def test_dropped_record_is_not_retried(self, raw_parser):
        """Test that later feeds do not see the dropped bytes again"""
        raw_parser.feed(b"\xc3\x28\n\n")

        events = raw_parser.feed(b"data: next\n\n")
        assert [e.data for e in events] == ["data: next"]

    def test_replace_policy(self):
        """Test that replace emits the record with substitutions"""
        parser = make_raw_parser(decode_errors="replace")

        events = parser.feed(b"data: \xff\n\n")
        assert [e.data for e in events] == ["data: \ufffd"]
        assert parser.dropped_records == 0

    def test_raise_policy(self):
        """Test that raise reports the bad record and keeps the stream usable"""
        parser = make_raw_parser(decode_errors="raise")

        with pytest.raises(RecordDecodeError) as exc_info:
            parser.feed(b"data: a\n\n\xff\n\ndata: b")

        assert exc_info.value.raw == b"\xff"
        assert [e.data for e in exc_info.value.events] == ["data: a"]
        assert parser.current_buffer == "data: b"

        assert [e.data for e in parser.feed(b"\n\n")] == ["data: b"]

    def test_unknown_policy(self):
        """Test that an unknown policy name is rejected"""
        with pytest.raises(ValueError):
            OpenAIStreamParser(decode_errors="ignore")

    def test_no_newline_styles(self):
        """Test that at least one newline style is required"""
        with pytest.raises(ValueError):
            OpenAIStreamParser(newline_styles=())


@pytest.mark.unit
class TestBufferLimit:
    """Optional cap on the pending partial record"""

    def test_unlimited_by_default(self, parser):
        """Test that large partial records accumulate"""
        parser.feed(b"data: " + b"x" * 100_000)

        assert parser.buffered_bytes == 100_006

    def test_overflow_raises_and_clears(self):
        """Test that exceeding the limit raises with the framed events"""
        parser = make_raw_parser(max_buffer_bytes=8)

        with pytest.raises(BufferOverflowError) as exc_info:
            parser.feed(b"data: a\n\n0123456789")

        assert exc_info.value.size == 10
        assert exc_info.value.limit == 8
        assert [e.data for e in exc_info.value.events] == ["data: a"]
        assert parser.buffered_bytes == 0

    def test_limit_is_inclusive(self):
        """Test that a pending record of exactly the limit is accepted"""
        parser = make_raw_parser(max_buffer_bytes=8)

        assert parser.feed(b"data: ok") == []
        assert [e.data for e in parser.feed(b"\n\n")] == ["data: ok"]

    def test_zero_means_unlimited(self):
        """Test that a zero limit disables the check"""
        parser = make_raw_parser(max_buffer_bytes=0)

        parser.feed(b"x" * 1024)
        assert parser.buffered_bytes == 1024

    def test_negative_limit_rejected(self):
        """Test that a negative limit is refused at construction"""
        with pytest.raises(ValueError):
            OpenAIStreamParser(max_buffer_bytes=-1)

    def test_limit_applies_after_decode_error(self):
        """Test that an oversized remainder is discarded when a decode error is raised"""
        parser = make_raw_parser(decode_errors="raise", max_buffer_bytes=4)

        with pytest.raises(RecordDecodeError) as exc_info:
            parser.feed(b"data: a\n\n\xff\n\n0123456789")

        assert [e.data for e in exc_info.value.events] == ["data: a"]
        assert parser.buffered_bytes == 0
