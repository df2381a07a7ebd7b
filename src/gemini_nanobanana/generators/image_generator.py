"""Gemini image generator.

This module sends prompts and inline images to the Gemini generateContent
REST endpoint and decodes the images it returns. Each call is retried with
exponential backoff on 429, 5xx, timeouts and network errors.
"""

from __future__ import annotations

import asyncio
import base64
from pathlib import Path
from typing import Awaitable, Callable, Sequence

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from gemini_nanobanana.config.constants import Limits
from gemini_nanobanana.config.logging import get_logger
from gemini_nanobanana.config.settings import Settings
from gemini_nanobanana.exceptions import (
    CredentialError,
    InputError,
    NanobananaError,
    PermanentProviderError,
    RequestTimeoutError,
    TransientProviderError,
)
from gemini_nanobanana.generators.retry import (
    AttemptRecord,
    AttemptState,
    RetryPolicy,
    is_retryable,
    is_retryable_status,
)
from gemini_nanobanana.models.gemini import GeminiResponse, build_request_body
from gemini_nanobanana.models.images import DecodedImage, InlineImageInput

logger = get_logger(__name__)


def _truncate(text: str, limit: int = Limits.ERROR_BODY_CHARS) -> str:
    return text if len(text) <= limit else text[:limit]


class ImageGenerator:
    """Generates and edits images using the Gemini REST API.

    Holds no per-call state, so one instance can serve concurrent tool calls.
    Every ``execute`` call uses the injected ``httpx.AsyncClient`` or opens its
    own for the duration of the call.
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the image generator.

        Args:
            settings: Process settings (API key, endpoint, timeout, retry budget).
            client: Optional shared HTTP client. Not closed by the generator.
            policy: Retry policy. Built from settings when omitted.
            sleep: Coroutine used for backoff delays.
        """
        self.api_key = settings.gemini_api_key
        self.endpoint = settings.gemini_image_endpoint
        self.timeout = settings.request_timeout
        self.policy = policy or RetryPolicy(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
        )
        self._client = client
        self._sleep = sleep
        logger.debug("Initialized ImageGenerator with endpoint: %s", self.endpoint)

    async def execute(
        self,
        prompt: str,
        images: Sequence[InlineImageInput] = (),
    ) -> list[DecodedImage]:
        """Send a prompt and optional input images, return the generated images.

        Args:
            prompt: Text instruction, sent as the first content part.
            images: Input images, sent after the prompt in the given order.

        Returns:
            Every image in the first candidate of the response, at least one.

        Raises:
            CredentialError: If no API key is configured.
            InputError: If an input image has no data and no readable path.
            RequestTimeoutError: If the final attempt timed out.
            PermanentProviderError: If the API rejected the request, returned no
                image, or kept failing until the retry budget ran out.
        """
        self._check_credentials()
        resolved = [self._resolve_input(image, index) for index, image in enumerate(images)]
        body = build_request_body(prompt, resolved)

        logger.debug(
            "Sending request to Gemini API",
            extra={
                "endpoint": self.endpoint,
                "parts": len(resolved) + 1,
                "prompt": prompt[: Limits.LOG_PROMPT_CHARS]
                + ("..." if len(prompt) > Limits.LOG_PROMPT_CHARS else ""),
            },
        )

        record = AttemptRecord()
        if self._client is not None:
            return await self._execute_with_retry(self._client, body, record)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
            return await self._execute_with_retry(client, body, record)

    def _check_credentials(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise CredentialError(
                "GEMINI_API_KEY environment variable is required but not set or empty",
                details="Set GEMINI_API_KEY with your Google AI Studio API key",
            )

    def _resolve_input(self, image: InlineImageInput, index: int) -> tuple[str, str]:
        """Return ``(mime_type, base64_data)`` for one input image."""
        if not image.has_source:
            raise InputError(f"Input image {index + 1} requires either dataBase64 or path")
        if image.data_base64:
            return image.mime_type, image.data_base64
        try:
            data = Path(image.path).resolve().read_bytes()
        except OSError as e:
            raise InputError(
                f"Could not read input image {index + 1} from {image.path}",
                details=str(e),
            ) from e
        return image.mime_type, base64.b64encode(data).decode("ascii")

    async def _execute_with_retry(
        self,
        client: httpx.AsyncClient,
        body: dict,
        record: AttemptRecord,
    ) -> list[DecodedImage]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=self.policy.wait,
            retry=retry_if_exception(is_retryable),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    record.attempt = attempt.retry_state.attempt_number - 1
                    images = await self._attempt(client, body, record)
        except TransientProviderError as e:
            self._finish(record, AttemptState.FAILED_PERMANENTLY)
            raise PermanentProviderError(
                f"Gemini API error {record.last_status} after {record.attempts} attempts: {e.body}",
                status_code=record.last_status,
                body=e.body,
            ) from e
        except httpx.TransportError as e:
            self._finish(record, AttemptState.FAILED_PERMANENTLY)
            raise PermanentProviderError(
                f"Request to Gemini API failed after {record.attempts} attempts: {e}",
                details=record.last_error,
            ) from e
        except NanobananaError as e:
            record.last_error = e.message
            self._finish(record, AttemptState.FAILED_PERMANENTLY)
            raise

        record.last_error = None
        self._finish(record, AttemptState.SUCCEEDED, imageCount=len(images))
        return images

    def _finish(self, record: AttemptRecord, state: AttemptState, **extra) -> None:
        record.state = state
        if state is AttemptState.SUCCEEDED:
            logger.debug("Gemini request finished", extra={**record.log_extra(), **extra})
        else:
            logger.error("Gemini request finished", extra={**record.log_extra(), **extra})

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        body: dict,
        record: AttemptRecord,
    ) -> list[DecodedImage]:
        """One POST under the wall-clock timeout."""
        try:
            response = await asyncio.wait_for(
                client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    json=body,
                    headers={"Content-Type": "application/json"},
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            record.last_status = None
            record.last_error = "timeout"
            raise RequestTimeoutError(self.timeout) from e
        except httpx.TransportError as e:
            record.last_status = None
            record.last_error = str(e) or type(e).__name__
            raise

        record.last_status = response.status_code
        logger.debug(
            "Received response from Gemini API",
            extra={"status": response.status_code, "attempt": record.attempts},
        )

        if response.is_success:
            return self._decode(response)

        error_text = _truncate(response.text)
        record.last_error = error_text
        logger.error(
            "Gemini API error response",
            extra={
                "status": response.status_code,
                "errorText": error_text,
                "attempt": record.attempts,
            },
        )
        message = f"Gemini API error {response.status_code}: {error_text}"
        if is_retryable_status(response.status_code):
            raise TransientProviderError(message, status_code=response.status_code, body=error_text)
        raise PermanentProviderError(message, status_code=response.status_code, body=error_text)

    def _decode(self, response: httpx.Response) -> list[DecodedImage]:
        """Collect every inline image from the first candidate."""
        try:
            payload = GeminiResponse.model_validate_json(response.content)
            images = payload.images()
        except ValueError as e:
            raise PermanentProviderError(
                "Gemini API returned a response that could not be decoded",
                status_code=response.status_code,
                body=_truncate(response.text),
                details=str(e),
            ) from e

        logger.debug(
            "Processing API response",
            extra={
                "candidatesCount": len(payload.candidates),
                "partsCount": len(payload.first_parts),
            },
        )

        if not images:
            finish_reason = payload.finish_reason
            logger.error(
                "No image data in API response",
                extra={
                    "finishReason": finish_reason,
                    "response": _truncate(response.text, 1000),
                },
            )
            details = payload.text() or None
            if finish_reason and finish_reason != "STOP":
                details = f"finishReason: {finish_reason}" + (f"\n{details}" if details else "")
            raise PermanentProviderError(
                "No image data returned by Gemini API",
                status_code=response.status_code,
                body=_truncate(response.text),
                details=details,
            )
        return images

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "API request failed, retrying",
            extra={
                "attempt": retry_state.attempt_number,
                "maxRetries": self.policy.max_retries,
                "retryInS": round(retry_state.next_action.sleep, 3)
                if retry_state.next_action
                else None,
                "error": str(exc) if exc else None,
            },
        )
