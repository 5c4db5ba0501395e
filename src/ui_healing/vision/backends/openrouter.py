"""OpenRouter vision backend — cloud routing to Gemini Flash, Claude Haiku, etc."""
import base64
import time
import logging
from ... import config, debug
from ..base import VisionBackend

log = logging.getLogger(__name__)

_OPENROUTER_BASE = "https://openrouter.ai/api/v1"


def openai_messages(system: str, prompt: str, image: bytes) -> list[dict]:
    """OpenAI-compatible messages with one inline JPEG."""
    b64 = base64.b64encode(image).decode()
    return [
        {"role": "system", "content": system},
        {
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{b64}"}},
                {"type": "text", "text": prompt},
            ],
        },
    ]


class OpenRouterBackend(VisionBackend):
    name = "openrouter"

    def _default_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {config.OPENROUTER_API_KEY}",
            "X-Title": "ui-healing",
            "Content-Type": "application/json",
        }

    @property
    def model(self) -> str:
        return config.OPENROUTER_VISION_MODEL

    async def chat(self, system: str, prompt: str, image: bytes) -> str:
        if not config.OPENROUTER_API_KEY:
            raise RuntimeError("OPENROUTER_API_KEY not set — cannot use OpenRouter vision backend")

        debug.log_vision_request(prompt, len(image), backend=self.name)

        payload = {
            "model": self.model,
            "messages": openai_messages(system, prompt, image),
            "max_tokens": config.VISION_MAX_TOKENS,
            "temperature": config.VISION_TEMPERATURE,
        }

        start = time.time()
        resp = await self._get_client().post(f"{_OPENROUTER_BASE}/chat/completions", json=payload, headers=self._default_headers())
        resp.raise_for_status()
        data = resp.json()
        response_text = (data["choices"][0]["message"]["content"] or "").strip()
        elapsed_ms = (time.time() - start) * 1000

        debug.log_vision_response(response_text, elapsed_ms, backend=self.name)
        return response_text

    async def check_health(self) -> dict:
        if not config.OPENROUTER_API_KEY:
            return {"ok": False, "backend": self.name, "error": "OPENROUTER_API_KEY not set"}
        try:
            resp = await self._get_client().get(f"{_OPENROUTER_BASE}/models", timeout=5.0, headers=self._default_headers())
            resp.raise_for_status()
            return {"ok": True, "backend": self.name, "model": self.model}
        except Exception as e:
            return {"ok": False, "backend": self.name, "error": str(e)}
