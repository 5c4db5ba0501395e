"""Abstract base class for vision chat backends."""
from abc import ABC, abstractmethod

import httpx

from .. import config


class VisionBackend(ABC):
    """Interface for all vision backends (ollama, openrouter, claude, vllm)."""

    name = "base"

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    def _default_headers(self) -> dict:
        return {"Content-Type": "application/json"}

    def _get_client(self) -> httpx.AsyncClient:
        # One persistent client per backend instance
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=config.VISION_TIMEOUT, headers=self._default_headers())
        return self._client

    async def aclose(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    @property
    @abstractmethod
    def model(self) -> str:
        ...

    @abstractmethod
    async def chat(self, system: str, prompt: str, image: bytes) -> str:
        """Send a system instruction, a user prompt and one JPEG image; return the raw reply text."""
        ...

    @abstractmethod
    async def check_health(self) -> dict:
        """Check if the backend is healthy and ready."""
        ...
