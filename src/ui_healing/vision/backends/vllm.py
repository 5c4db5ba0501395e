"""vLLM vision backend — OpenAI-compatible API for Qwen-VL, UI-TARS, etc."""
import time
import logging
from ... import config, debug
from ..base import VisionBackend
from .openrouter import openai_messages

log = logging.getLogger(__name__)


class VLLMBackend(VisionBackend):
    name = "vllm"

    @property
    def model(self) -> str:
        return config.VLLM_MODEL

    async def chat(self, system: str, prompt: str, image: bytes) -> str:
        debug.log_vision_request(prompt, len(image), backend=self.name)

        payload = {
            "model": self.model,
            "messages": openai_messages(system, prompt, image),
            "max_tokens": config.VISION_MAX_TOKENS,
            "temperature": config.VISION_TEMPERATURE,
        }

        start = time.time()
        resp = await self._get_client().post(f"{config.VLLM_URL}/v1/chat/completions", json=payload, headers=self._default_headers())
        resp.raise_for_status()
        data = resp.json()
        response_text = (data["choices"][0]["message"]["content"] or "").strip()
        elapsed_ms = (time.time() - start) * 1000

        debug.log_vision_response(response_text, elapsed_ms, backend=self.name)
        return response_text

    async def check_health(self) -> dict:
        try:
            resp = await self._get_client().get(f"{config.VLLM_URL}/v1/models", timeout=5.0, headers=self._default_headers())
            resp.raise_for_status()
            models = [m["id"] for m in resp.json().get("data", [])]
            return {"ok": True, "backend": self.name, "models": models, "model": self.model}
        except Exception as e:
            return {"ok": False, "backend": self.name, "error": str(e)}
