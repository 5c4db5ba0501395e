"""Ollama vision backend — local inference via Ollama chat API."""
import base64
import time
import logging
from ... import config, debug
from ..base import VisionBackend

log = logging.getLogger(__name__)


class OllamaBackend(VisionBackend):
    name = "ollama"

    @property
    def model(self) -> str:
        return config.OLLAMA_VISION_MODEL

    async def chat(self, system: str, prompt: str, image: bytes) -> str:
        debug.log_vision_request(prompt, len(image), backend=self.name)

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt, "images": [base64.b64encode(image).decode()]},
            ],
            "stream": False,
            "keep_alive": config.OLLAMA_KEEP_ALIVE,
            "options": {
                "num_predict": config.VISION_MAX_TOKENS,
                "temperature": config.VISION_TEMPERATURE,
            },
        }

        start = time.time()
        resp = await self._get_client().post(f"{config.OLLAMA_URL}/api/chat", json=payload, headers=self._default_headers())
        resp.raise_for_status()
        data = resp.json()
        response_text = (data.get("message") or {}).get("content", "").strip()
        elapsed_ms = (time.time() - start) * 1000

        debug.log_vision_response(response_text, elapsed_ms, backend=self.name)
        log.debug(f"Vision response ({data.get('total_duration', 0)/1e9:.1f}s): {response_text}")
        return response_text

    async def check_health(self) -> dict:
        model = self.model
        try:
            resp = await self._get_client().get(f"{config.OLLAMA_URL}/api/tags", timeout=5.0, headers=self._default_headers())
            resp.raise_for_status()
            models = [m["name"] for m in resp.json().get("models", [])]
            has_model = any(model in m for m in models)
            result = {"ok": has_model, "backend": self.name, "model": model, "models": models, "has_model": has_model}
            if not has_model:
                result["hint"] = f"Run: ollama pull {model}"
            return result
        except Exception as e:
            return {"ok": False, "backend": self.name, "model": model, "error": str(e)}
