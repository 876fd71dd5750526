"""Shared fixtures for the test suite"""
import pytest

from openai_streamer import OpenAIEvent, OpenAIStreamParser


@pytest.fixture
def parser() -> OpenAIStreamParser:
    return OpenAIStreamParser()


@pytest.fixture
def raw_parser() -> OpenAIStreamParser:
    """Parser whose events carry the decoded record text untouched in ``data``"""
    return OpenAIStreamParser(event_factory=lambda text, styles: OpenAIEvent(data=text))
