"""Pluggable vision backends and the locator built on them.

Backend selected by UIH_VISION_BACKEND env var: ollama|openrouter|claude|vllm
"""
import httpx

from .. import config
from .base import VisionBackend
from .locator import VisionLocator


def create_backend(name: str = None, client: httpx.AsyncClient | None = None) -> VisionBackend:
    name = (name or config.VISION_BACKEND).lower()
    if name == "ollama":
        from .backends.ollama import OllamaBackend
        return OllamaBackend(client)
    if name == "openrouter":
        from .backends.openrouter import OpenRouterBackend
        return OpenRouterBackend(client)
    if name == "claude":
        from .backends.claude import ClaudeBackend
        return ClaudeBackend(client)
    if name == "vllm":
        from .backends.vllm import VLLMBackend
        return VLLMBackend(client)
    raise ValueError(f"Unknown vision backend: {name}. Use ollama|openrouter|claude|vllm")


def create_locator(name: str = None, client: httpx.AsyncClient | None = None) -> VisionLocator:
    return VisionLocator(create_backend(name, client))


__all__ = ["VisionBackend", "VisionLocator", "create_backend", "create_locator"]
