"""
OpenAI provider implementation.
Streams responses from OpenAI-compatible endpoints and frames them into events.
"""
import json
import logging
from typing import Dict, Any, Optional, AsyncIterator, TYPE_CHECKING
import httpx

from settings import (
    REQUEST_TIMEOUT,
    STREAM_TIMEOUT,
    CONNECT_TIMEOUT,
    READ_TIMEOUT,
    STREAM_MAX_BUFFER_BYTES,
    STREAM_DECODE_ERROR_POLICY,
)
from openai_streamer import OpenAIEvent, OpenAIStreamParser
from providers.base_provider import BaseProvider

if TYPE_CHECKING:
    from stream_debug import StreamTracer

logger = logging.getLogger(__name__)


def _error_event(message: str) -> OpenAIEvent:
    return OpenAIEvent(event="error", data=json.dumps({"error": message}))


class OpenAIProvider(BaseProvider):
    """Provider implementation for OpenAI-compatible APIs"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: The API base URL, e.g. https://api.openai.com/v1
            api_key: The API key for authentication
            transport: Optional httpx transport, used to stub the network in tests
        """
        super().__init__(base_url, api_key)
        self.transport = transport

    def _get_endpoint(self, path: str) -> str:
        """Join the base URL and an endpoint path"""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _get_headers(self, accept: str = "application/json") -> Dict[str, str]:
        """Build request headers"""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": accept,
        }

    def _create_parser(self) -> OpenAIStreamParser:
        return OpenAIStreamParser(
            decode_errors=STREAM_DECODE_ERROR_POLICY,
            max_buffer_bytes=STREAM_MAX_BUFFER_BYTES,
        )

    async def make_request(
        self,
        request_data: Dict[str, Any],
        request_id: str,
        path: str = "chat/completions",
    ) -> httpx.Response:
        """Make a non-streaming request to an OpenAI-compatible provider

        Args:
            request_data: The OpenAI-format request body
            request_id: Request ID for logging
            path: Endpoint path relative to the base URL

        Returns:
            The HTTP response from the provider
        """
        endpoint = self._get_endpoint(path)
        headers = self._get_headers()

        logger.debug(f"[{request_id}] Making request to {endpoint}")
        logger.debug(f"[{request_id}] Request body: {request_data}")

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT),
            transport=self.transport,
        ) as client:
            response = await client.post(
                endpoint,
                json=request_data,
                headers=headers
            )

            logger.debug(f"[{request_id}] Response status: {response.status_code}")
            return response

    async def stream_events(
        self,
        request_data: Dict[str, Any],
        request_id: str,
        path: str = "chat/completions",
        tracer: Optional["StreamTracer"] = None,
    ) -> AsyncIterator[OpenAIEvent]:
        """Stream events from an OpenAI-compatible provider

        Byte chunks are fed to a stream parser as they arrive. The stream ends at
        the ``[DONE]`` sentinel, which is not yielded.

        Args:
            request_data: The OpenAI-format request body
            request_id: Request ID for logging
            path: Endpoint path relative to the base URL
            tracer: Optional stream tracer for debugging

        Yields:
            Parsed events; transport failures are reported as ``error`` events

        Raises:
            StreamParserError: the parser was configured to raise on bad input
        """
        endpoint = self._get_endpoint(path)
        headers = self._get_headers(accept="text/event-stream")
        payload = {**request_data, "stream": True}
        parser = self._create_parser()

        if tracer:
            tracer.log_note(f"starting stream to {endpoint}")
            tracer.log_note(f"model={payload.get('model')}")

        logger.debug(f"[{request_id}] Streaming from {endpoint}")
        logger.debug(f"[{request_id}] Request body: {payload}")

        # Use STREAM_TIMEOUT for streaming requests with READ_TIMEOUT between chunks
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(STREAM_TIMEOUT, connect=CONNECT_TIMEOUT, read=READ_TIMEOUT),
            transport=self.transport,
        ) as client:
            async with client.stream(
                "POST",
                endpoint,
                json=payload,
                headers=headers
            ) as response:
                if tracer:
                    tracer.log_note(f"provider responded with status={response.status_code}")

                if response.status_code != 200:
                    # For error responses, surface the body as a single error event
                    error_text = await response.aread()
                    error_json = error_text.decode("utf-8", "replace")
                    logger.error(f"[{request_id}] Provider error {response.status_code}: {error_json}")
                    if tracer:
                        tracer.log_error(f"provider error status={response.status_code} body={error_json}")
                    yield OpenAIEvent(event="error", data=error_json)
                    return

                chunk_index = 0
                try:
                    async for chunk in response.aiter_bytes():
                        chunk_index += 1
                        if tracer:
                            tracer.log_raw_chunk(chunk)

                        for event in parser.feed(chunk):
                            if tracer:
                                tracer.log_event(event)
                            if event.is_done:
                                logger.debug(f"[{request_id}] Stream finished after {chunk_index} chunks")
                                return
                            yield event
                except httpx.ReadTimeout:
                    logger.error(f"[{request_id}] Stream timeout after {STREAM_TIMEOUT}s")
                    if tracer:
                        tracer.log_error(f"stream timeout after {STREAM_TIMEOUT}s")
                    yield _error_event(f"Stream timeout after {STREAM_TIMEOUT}s")
                except httpx.RemoteProtocolError as e:
                    logger.error(f"[{request_id}] Connection closed: {e}")
                    if tracer:
                        tracer.log_error(f"stream closed unexpectedly: {str(e)}")
                    yield _error_event(f"Connection closed: {str(e)}")
                finally:
                    if parser.buffered_bytes:
                        logger.debug(
                            f"[{request_id}] Discarding {parser.buffered_bytes} bytes of unterminated event"
                        )
                    if parser.dropped_records:
                        logger.warning(
                            f"[{request_id}] Dropped {parser.dropped_records} undecodable event(s)"
                        )
                    if tracer:
                        tracer.log_note("stream closed")
