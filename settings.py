import os
from config.loader import get_config_loader
from openai_streamer.stream_parser import DECODE_ERROR_POLICIES

# Get the config loader instance
config = get_config_loader()

# Logging
LOG_LEVEL = config.get("LOG_LEVEL", "info")

# OpenAI API configuration
API_BASE = config.get("API_BASE", "https://api.openai.com/v1")
# API key is only read from the environment, never given a default
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", None)

# Timeout configuration
# Connection timeout: Time to establish TCP connection
CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
# Read timeout: Time between receiving data chunks, important for detecting stalled streams
READ_TIMEOUT = config.get("READ_TIMEOUT", 60.0)
# Request timeout: Total timeout for non-streaming requests
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 120.0)
# Stream timeout: Total timeout for streaming requests
STREAM_TIMEOUT = config.get("STREAM_TIMEOUT", 600.0)

# Stream parser
# Upper bound for a pending partial record in bytes (0 = unlimited)
STREAM_MAX_BUFFER_BYTES = config.get_non_negative("STREAM_MAX_BUFFER_BYTES", 0)
# What to do with records that are not valid UTF-8
STREAM_DECODE_ERROR_POLICY = config.get_choice(
    "STREAM_DECODE_ERROR_POLICY", "drop", DECODE_ERROR_POLICIES
)

# Stream tracing / debugging
STREAM_TRACE_ENABLED = config.get("STREAM_TRACE_ENABLED", False)
STREAM_TRACE_DIR = config.get("STREAM_TRACE_DIR", "stream_traces")
STREAM_TRACE_MAX_BYTES = config.get("STREAM_TRACE_MAX_BYTES", 262144)
