"""
Streaming API providers.
"""
from .base_provider import BaseProvider
from .openai_provider import OpenAIProvider

__all__ = [
    "BaseProvider",
    "OpenAIProvider",
]
