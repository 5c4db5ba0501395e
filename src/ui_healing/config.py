"""Configuration for ui-healing (adaptive UI element resolution)."""
from pathlib import Path
from dotenv import load_dotenv
import os

load_dotenv()  # loads .env from project root (or cwd) if present

# Paths
DATA_DIR = Path(os.environ.get("UIH_DATA_DIR", Path.home() / ".ui-healing"))
UI_MAP_PATH = Path(os.environ.get("UIH_UI_MAP_PATH", DATA_DIR / "ui-maps.json"))
UI_MAP_DB_PATH = Path(os.environ.get("UIH_UI_MAP_DB_PATH", DATA_DIR / "ui-maps.db"))
LOG_DIR = DATA_DIR / "logs"

# Selector memory storage: json (single document) | sqlite
MEMORY_BACKEND = os.environ.get("UIH_MEMORY_BACKEND", "json")

# Confidence adjustments: demote fast, promote slow
SUCCESS_BOOST = 0.1
FAILURE_PENALTY = 0.3
NATIVE_SELECTOR_CONFIDENCE = 1.0
DEFAULT_VISION_CONFIDENCE = 0.5  # when the model omits its own

# Fallback screen size when the standard finder can't report one (portrait phone)
DEFAULT_SCREEN_WIDTH = int(os.environ.get("UIH_SCREEN_WIDTH", "1080"))
DEFAULT_SCREEN_HEIGHT = int(os.environ.get("UIH_SCREEN_HEIGHT", "2400"))

# Vision backend selection
VISION_BACKEND = os.environ.get("UIH_VISION_BACKEND", "ollama")  # ollama|openrouter|claude|vllm
VISION_TIMEOUT = float(os.environ.get("UIH_VISION_TIMEOUT", "120"))
VISION_MAX_TOKENS = int(os.environ.get("UIH_VISION_MAX_TOKENS", "300"))
VISION_TEMPERATURE = float(os.environ.get("UIH_VISION_TEMPERATURE", "0.1"))

# Screenshots are downscaled before upload; percentages make this lossless for coordinates
IMAGE_MAX_DIM = int(os.environ.get("UIH_IMAGE_MAX_DIM", "1280"))
IMAGE_JPEG_QUALITY = int(os.environ.get("UIH_IMAGE_JPEG_QUALITY", "80"))

# Ollama
OLLAMA_URL = os.environ.get("OLLAMA_URL", "http://localhost:11434")
OLLAMA_VISION_MODEL = os.environ.get("UIH_OLLAMA_VISION_MODEL", "qwen2.5vl:7b")
OLLAMA_KEEP_ALIVE = os.environ.get("OLLAMA_KEEP_ALIVE", "10m")

# vLLM (OpenAI-compatible)
VLLM_URL = os.environ.get("UIH_VLLM_URL", "http://localhost:8000")
VLLM_MODEL = os.environ.get("UIH_VLLM_MODEL", "Qwen/Qwen2.5-VL-7B-Instruct")

# OpenRouter (cloud)
OPENROUTER_API_KEY = os.environ.get("OPENROUTER_API_KEY", "")
OPENROUTER_VISION_MODEL = os.environ.get("UIH_OPENROUTER_VISION_MODEL", "google/gemini-2.0-flash-001")

# Claude vision
CLAUDE_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
CLAUDE_VISION_MODEL = os.environ.get("UIH_CLAUDE_VISION_MODEL", "claude-sonnet-4-20250514")

LOCATOR_SYSTEM_INSTRUCTIONS = (
    "You are a UI element locator. The user will show you a phone screenshot and ask you to find a specific element. "
    'Respond in JSON format: {"found": true/false, "x": <number 0-100 percentage from left>, '
    '"y": <number 0-100 percentage from top>, "confidence": <0-1>, "description": "what you see"}. '
    "x and y should be percentage positions (0-100) of the element's CENTER. "
    "If you cannot find the element, set found=false."
)

DESCRIBE_SYSTEM_INSTRUCTIONS = (
    "You are a phone screen analyzer. Describe what you see on the screen, including the app name, "
    "visible buttons, text fields, and overall layout. Be concise (max 100 words)."
)

# Debug category log
DEBUG = os.environ.get("UIH_DEBUG", "0") in ("1", "true", "yes")
