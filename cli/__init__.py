"""CLI package for the OpenAI streamer

Provides the ``openai-stream-replay`` developer tool, which replays captured
event streams through the parser in arbitrary chunkings.
"""

from cli.main import main, run
from cli.replay import replay_bytes, split_chunks

__all__ = [
    "main",
    "run",
    "replay_bytes",
    "split_chunks",
]
