"""
Location: python/thred_sdk/client.py

Summary:
    Main ThredClient class for the thred-sdk. Sends messages to the Thred
    answer API and returns brand-enriched answers, either as one JSON
    document or as a text stream followed by a metadata object.

Usage:
    The primary entry point for using the SDK. Create a ThredClient with
    an API key, then call answer() for a single response or one of the
    streaming methods to receive the answer text as it is generated.

Example:
    from thred_sdk import ThredClient

    async with ThredClient(api_key="sk_live_...") as client:
        # Single response
        result = await client.answer({"message": "Best note-taking app?"})
        print(result["response"])

        # Streaming with a callback
        metadata = await client.answer_stream(
            {"message": "How can I focus better?"},
            on_chunk=lambda text: print(text),
        )

        # Streaming with an async generator
        async for item in client.answer_stream_generator({"message": "Hi"}):
            if isinstance(item, str):
                print(item)
            else:
                print(item.metadata)
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Mapping, Optional, Union

import httpx
import pydantic

from .errors import ErrorKind, ThredError, raise_for_response, transport_error
from .stream import MetadataEvent, StreamEvent, TextEvent, split_stream
from .targets import Targets, TargetResolver, resolve_target
from .types import AnswerRequest, ModelName, ThredConfig


logger = logging.getLogger(__name__)

RequestLike = Union[AnswerRequest, Mapping[str, Any], str]


class ThredClient:
    """
    Client for the Thred answer API.

    Each call is an independent request; the only state shared between
    calls is the immutable configuration and the pooled HTTP client.

    Attributes:
        config: Validated client configuration
        base_url: API root taken from config
    """

    def __init__(
        self,
        config: Optional[ThredConfig] = None,
        *,
        api_key: Optional[str] = None,
        default_model: Optional[ModelName] = None,
        timeout: Optional[int] = None,
        base_url: Optional[str] = None,
        target_resolver: Optional[TargetResolver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_impression_error: Optional[Callable[[ThredError], None]] = None,
    ):
        """
        Initialize the ThredClient.

        Args:
            config: Full configuration; keyword arguments override its fields
            api_key: API key for bearer authentication (required)
            default_model: Model used when a request does not name one
            timeout: Request timeout in milliseconds (default 30000)
            base_url: API root (default https://api.thred.dev/v1)
            target_resolver: Maps target identifiers to sinks for set_response
            transport: Optional httpx transport (custom networking or tests)
            on_impression_error: Called with the error when a background
                impression registration fails

        Raises:
            ThredError: VALIDATION if the API key is missing or config is invalid
        """
        values = config.model_dump() if config else {}
        overrides = {
            "api_key": api_key,
            "default_model": default_model,
            "timeout": timeout,
            "base_url": base_url,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values.setdefault("api_key", "")
        try:
            self.config = ThredConfig(**values)
        except pydantic.ValidationError as e:
            raise ThredError(_first_error(e), ErrorKind.VALIDATION) from e

        self.base_url = self.config.base_url
        self._target_resolver = target_resolver
        self._on_impression_error = on_impression_error
        self._impression_tasks: set[asyncio.Task] = set()
        self._timeout_seconds = self.config.timeout / 1000
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout_seconds),
            transport=transport,
        )

    async def close(self) -> None:
        """Wait for pending impressions, then release pooled connections."""
        await self.flush_impressions()
        await self._http.aclose()

    async def flush_impressions(self) -> None:
        """Wait for impressions registered in the background to finish."""
        if self._impression_tasks:
            await asyncio.gather(*self._impression_tasks, return_exceptions=True)

    async def __aenter__(self) -> "ThredClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def answer(
        self,
        request: RequestLike,
        targets: Optional[Targets] = None,
    ) -> Any:
        """
        Generate a brand-enriched answer in a single round trip.

        Args:
            request: AnswerRequest, mapping of request fields, or message string
            targets: Optional sinks to receive the answer text and link

        Returns:
            Parsed JSON body: {"response": str, "metadata": {...}}

        Raises:
            ThredError: VALIDATION for an empty message, or the classified
                HTTP/transport failure
        """
        payload = self._build_payload(request)
        response = await self._post("/answer", payload)
        await raise_for_response(response)
        body = _json_body(response)

        if isinstance(body, dict) and body.get("response"):
            self._apply_targets(body["response"], body, targets)
        return body

    async def answer_stream(
        self,
        request: RequestLike,
        on_chunk: Callable[[str], None],
        targets: Optional[Targets] = None,
        *,
        on_metadata: Optional[Callable[[dict], None]] = None,
    ) -> Optional[dict]:
        """
        Stream an answer, calling on_chunk with the full text so far.

        Returns only after the stream has closed.

        Args:
            request: AnswerRequest, mapping of request fields, or message string
            on_chunk: Called with the accumulated answer text on every update
            targets: Optional sinks to receive the final text and link
            on_metadata: Called once with the metadata object, if any arrives

        Returns:
            The metadata object, or None if the stream carried none
        """
        text, metadata = await self._drain(request, on_chunk, on_metadata)
        self._apply_targets(text, metadata, targets)
        return metadata

    async def answer_stream_buffered(
        self,
        request: RequestLike,
        targets: Optional[Targets] = None,
    ) -> Optional[dict]:
        """
        Stream an answer to completion and return only its metadata.

        Args:
            request: AnswerRequest, mapping of request fields, or message string
            targets: Optional sinks to receive the final text and link

        Returns:
            The metadata object, or None if the stream carried none
        """
        text, metadata = await self._drain(request)
        self._apply_targets(text, metadata, targets)
        return metadata

    async def answer_stream_generator(
        self,
        request: RequestLike,
    ) -> AsyncIterator[Union[str, MetadataEvent]]:
        """
        Stream an answer as an async generator.

        Yields:
            The accumulated answer text (str) on every update, then at most
            one MetadataEvent wrapping the metadata object
        """
        async with aclosing(self._stream_events(request)) as events:
            async for event in events:
                if isinstance(event, TextEvent):
                    yield event.text
                else:
                    yield event

    async def set_response(
        self,
        text: str,
        code: str,
        link: Optional[str] = None,
        targets: Optional[Targets] = None,
    ) -> Any:
        """
        Write an answer to its targets and register the impression.

        The impression is only registered when both text and code are set.

        Args:
            text: Final answer text
            code: Tracking code from the answer metadata
            link: Brand link from the answer metadata
            targets: Sinks (or identifiers) to write text and link into

        Returns:
            Parsed JSON body of the impression registration, or None
        """
        if targets:
            self._write_targets(text, link, targets)
        if text and code:
            return await self.register_impression(text, code)
        return None

    async def register_impression(self, text: str, code: str) -> Any:
        """
        Register that an enriched answer was shown to a user.

        Args:
            text: The answer text that was displayed
            code: Tracking code from the answer metadata

        Returns:
            Parsed JSON body from the API
        """
        response = await self._post("/impressions/register", {"text": text, "code": code})
        await raise_for_response(response)
        return _json_body(response)

    async def _drain(
        self,
        request: RequestLike,
        on_chunk: Optional[Callable[[str], None]] = None,
        on_metadata: Optional[Callable[[dict], None]] = None,
    ) -> tuple[str, Optional[dict]]:
        text = ""
        metadata: Optional[dict] = None
        async with aclosing(self._stream_events(request)) as events:
            async for event in events:
                if isinstance(event, TextEvent):
                    text = event.text
                    if on_chunk:
                        on_chunk(text)
                else:
                    metadata = event.metadata
                    if on_metadata:
                        on_metadata(metadata)
        return text, metadata

    async def _stream_events(self, request: RequestLike) -> AsyncIterator[StreamEvent]:
        """Open the answer stream and run it through the splitter."""
        payload = self._build_payload(request)
        response = await self._post("/answer/stream", payload, stream=True)
        try:
            await raise_for_response(response)
            async with aclosing(self._iter_bytes(response)) as chunks:
                async for event in split_stream(chunks):
                    yield event
        finally:
            await response.aclose()

    async def _iter_bytes(self, response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        except httpx.RequestError as e:
            raise transport_error(e, self.config.timeout) from e

    def _apply_targets(
        self,
        text: str,
        metadata: Optional[dict],
        targets: Optional[Targets],
    ) -> None:
        """
        Write a finished answer to its targets and register the impression.

        Registration runs as a background task so a tracking failure never
        replaces the answer already returned to the caller.
        """
        if not targets or metadata is None:
            return
        code, link = _tracking_fields(metadata)
        if not code:
            return
        self._write_targets(text, link, targets)
        if text:
            task = asyncio.create_task(self.register_impression(text, code))
            self._impression_tasks.add(task)
            task.add_done_callback(self._impression_done)

    def _impression_done(self, task: asyncio.Task) -> None:
        self._impression_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        logger.debug("Impression registration failed: %s", error)
        if self._on_impression_error:
            self._on_impression_error(error)

    def _write_targets(self, text: str, link: Optional[str], targets: Targets) -> None:
        text_sink = resolve_target(targets.text, self._target_resolver)
        if text_sink is not None:
            text_sink.set_text(text)
        link_sink = resolve_target(targets.link, self._target_resolver)
        if link_sink is not None and link:
            link_sink.set_link(link)

    async def _post(self, endpoint: str, payload: dict, stream: bool = False) -> httpx.Response:
        """
        POST a JSON payload under the configured deadline.

        The deadline covers sending the request and receiving the response
        headers (and, when not streaming, the body).
        """
        url = f"{self.base_url}{endpoint}"
        request = self._http.build_request("POST", url, json=payload, headers=self._headers())
        logger.debug("POST %s (model=%s)", endpoint, payload.get("model"))
        try:
            return await asyncio.wait_for(
                self._http.send(request, stream=stream),
                self._timeout_seconds,
            )
        except (httpx.RequestError, asyncio.TimeoutError) as e:
            raise transport_error(e, self.config.timeout) from e

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, request: RequestLike) -> dict:
        """
        Validate a request and fill in the default model.

        Raises:
            ThredError: VALIDATION if the message is empty or fields are invalid
        """
        if isinstance(request, str):
            request = {"message": request}
        if not isinstance(request, AnswerRequest):
            try:
                request = AnswerRequest.model_validate(request)
            except pydantic.ValidationError as e:
                raise ThredError(_first_error(e), ErrorKind.VALIDATION) from e

        if not request.message or not request.message.strip():
            raise ThredError("Message is required", ErrorKind.VALIDATION)

        payload = request.to_payload()
        payload["model"] = request.model or self.config.default_model
        return payload


def _tracking_fields(body: dict) -> tuple[Optional[str], Optional[str]]:
    """Return (code, link) from a metadata object or a full answer body."""
    metadata = body.get("metadata")
    if not isinstance(metadata, dict):
        metadata = body
    return metadata.get("code"), metadata.get("link")


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ThredError(
            "Response body is not valid JSON",
            ErrorKind.GENERIC,
            response.status_code,
        ) from e


def _first_error(exc: pydantic.ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error['msg']}" if location else error["msg"]
