import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from models import SunoAudio, SunoGeneration
from services.errors import (
    ConfigurationError,
    GenerationFailedError,
    GenerationTimeoutError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

SUNO_BASE_URL = "https://api.suno.ai/v1"
SUNO_MODEL = "chirp-v3"
MAX_DURATION_SECONDS = 30


@dataclass(frozen=True)
class PollPolicy:
    """Bounded retry policy for status polling.

    The default waits a fixed 2 seconds between attempts. ``backoff`` > 1
    grows the delay geometrically, capped by ``max_interval``.
    """

    max_attempts: int = 30
    interval: float = 2.0
    backoff: float = 1.0
    max_interval: Optional[float] = None

    def delay(self, attempt: int) -> float:
        delay = self.interval * (self.backoff ** attempt)
        if self.max_interval is not None:
            delay = min(delay, self.max_interval)
        return max(0.0, delay)


class SunoClient:
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = SUNO_BASE_URL,
        model: str = SUNO_MODEL,
        poll_policy: Optional[PollPolicy] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.poll_policy = poll_policy or PollPolicy()
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        if not self.api_key:
            raise ConfigurationError("SUNO_API_KEY not configured in environment")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def start_generation(self, prompt: str, duration: float = MAX_DURATION_SECONDS) -> SunoGeneration:
        """Ask Suno to render ``prompt`` as an instrumental clip of at most 30 seconds."""
        headers = self._headers()
        payload = {
            "prompt": prompt,
            "duration": min(duration, MAX_DURATION_SECONDS),
            "make_instrumental": True,
            "model": self.model,
        }

        try:
            async with self._client() as client:
                response = await client.post(f"{self.base_url}/generate", headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Suno request failed: {e}")
            raise UpstreamError(f"Suno API unreachable: {e}") from e

        if not response.is_success:
            message = _error_message(response)
            logger.error(f"Suno generation rejected ({response.status_code}): {message}")
            raise UpstreamError(f"Suno API error: {message}")

        try:
            return SunoGeneration(**response.json())
        except (ValueError, TypeError, PydanticValidationError) as e:
            raise UpstreamError("Suno API returned no generation id") from e

    async def await_completion(self, generation_id: str, max_attempts: Optional[int] = None) -> SunoAudio:
        """Poll the generation until it completes, fails or runs out of attempts."""
        headers = self._headers()
        attempts = self.poll_policy.max_attempts if max_attempts is None else max_attempts
        url = f"{self.base_url}/generate/{generation_id}"

        async with self._client() as client:
            for attempt in range(attempts):
                if attempt:
                    await asyncio.sleep(self.poll_policy.delay(attempt - 1))

                try:
                    response = await client.get(url, headers=headers)
                except httpx.HTTPError as e:
                    logger.error(f"Status check for {generation_id} failed: {e}")
                    raise UpstreamError(f"Suno API unreachable: {e}") from e

                data = _json_or_none(response)
                if not response.is_success or data is None:
                    logger.warning(
                        f"Unexpected status response for {generation_id} "
                        f"({response.status_code}), attempt {attempt + 1}/{attempts}"
                    )
                    continue

                status = data.get("status")
                if status == "complete":
                    try:
                        return SunoAudio(**data)
                    except PydanticValidationError as e:
                        raise UpstreamError("Suno generation completed without an audio URL") from e
                if status == "failed":
                    raise GenerationFailedError("Suno generation failed")

        raise GenerationTimeoutError("Suno generation timeout")


def _json_or_none(response: httpx.Response) -> Optional[dict]:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _error_message(response: httpx.Response) -> str:
    data = _json_or_none(response)
    if data and data.get("message"):
        return str(data["message"])
    return "Unknown error"
