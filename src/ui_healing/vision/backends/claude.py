"""Claude vision backend — Anthropic Messages API."""
import base64
import time
import logging
from ... import config, debug
from ..base import VisionBackend

log = logging.getLogger(__name__)

_ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"


class ClaudeBackend(VisionBackend):
    name = "claude"

    def _default_headers(self) -> dict:
        return {
            "x-api-key": config.CLAUDE_API_KEY,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

    @property
    def model(self) -> str:
        return config.CLAUDE_VISION_MODEL

    async def chat(self, system: str, prompt: str, image: bytes) -> str:
        if not config.CLAUDE_API_KEY:
            raise RuntimeError("ANTHROPIC_API_KEY not set — cannot use Claude vision backend")

        debug.log_vision_request(prompt, len(image), backend=self.name)

        b64 = base64.b64encode(image).decode()
        payload = {
            "model": self.model,
            "max_tokens": config.VISION_MAX_TOKENS,
            "system": system,
            "messages": [{
                "role": "user",
                "content": [
                    {"type": "image", "source": {"type": "base64", "media_type": "image/jpeg", "data": b64}},
                    {"type": "text", "text": prompt},
                ],
            }],
        }

        start = time.time()
        resp = await self._get_client().post(_ANTHROPIC_URL, json=payload, headers=self._default_headers())
        resp.raise_for_status()
        data = resp.json()
        response_text = "".join(
            block.get("text", "") for block in data.get("content", []) if block.get("type") == "text"
        ).strip()
        elapsed_ms = (time.time() - start) * 1000

        debug.log_vision_response(response_text, elapsed_ms, backend=self.name)
        return response_text

    async def check_health(self) -> dict:
        if not config.CLAUDE_API_KEY:
            return {"ok": False, "backend": self.name, "error": "ANTHROPIC_API_KEY not set"}
        return {"ok": True, "backend": self.name, "model": self.model}
