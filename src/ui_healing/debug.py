"""Rich debug logging with color-coded categories.

Enable: set UIH_DEBUG=1 or pass --debug to the CLI.
Logs to both stderr (colored) and a rolling log file.

Categories & colors:
  🟦 BLUE    — selector memory loads, saves, confidence changes
  🟩 GREEN   — vision model input/output (prompts + responses)
  🟨 YELLOW  — adaptive finder tier transitions
  🟥 RED     — errors and warnings
"""
import json
import os
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from . import config

# ANSI color codes
RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"

COLORS = {
    "STORE":  "\033[34m",  # Blue
    "VISION": "\033[32m",  # Green
    "FINDER": "\033[33m",  # Yellow
    "ERROR":  "\033[31m",  # Red
}

# Emoji prefixes for file logs (no ANSI)
EMOJI = {
    "STORE":  "🟦",
    "VISION": "🟩",
    "FINDER": "🟨",
    "ERROR":  "🟥",
}

MAX_LOG_BYTES = 10 * 1024 * 1024

_debug_enabled = False
_log_file = None
_log_path = None


def is_enabled() -> bool:
    return _debug_enabled


def init(enabled: bool = None, log_dir: Path = None):
    """Initialize debug logging. Call once at startup."""
    global _debug_enabled, _log_file, _log_path

    if enabled is None:
        enabled = os.environ.get("UIH_DEBUG", "0") in ("1", "true", "yes")

    _debug_enabled = enabled

    if not enabled:
        return

    log_dir = log_dir or config.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    _log_path = log_dir / "debug.log"

    # Rotate if over 10MB
    if _log_path.exists() and _log_path.stat().st_size > MAX_LOG_BYTES:
        rotated = log_dir / f"debug.{int(time.time())}.log"
        _log_path.rename(rotated)

    _log_file = open(_log_path, "a", buffering=1, encoding="utf-8")  # line-buffered

    log("STORE", f"Debug logging enabled. Log file: {_log_path}")


def log(category: str, message: str, data: dict = None):
    """Log a debug message with category color coding."""
    if not _debug_enabled:
        return

    ts = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]
    cat = category.upper()

    # Terminal (colored)
    color = COLORS.get(cat, RESET)
    prefix = f"{DIM}{ts}{RESET} {color}{BOLD}[{cat:6s}]{RESET} {color}"
    line = f"{prefix}{message}{RESET}"
    if data:
        data_str = json.dumps(data, indent=2, default=str)
        indented = "\n".join(f"  {color}{l}{RESET}" for l in data_str.split("\n"))
        line += f"\n{indented}"
    print(line, file=sys.stderr, flush=True)

    # File (emoji, no ANSI)
    emoji = EMOJI.get(cat, "  ")
    file_line = f"{ts} {emoji} [{cat:6s}] {message}"
    if data:
        file_line += f"\n{json.dumps(data, indent=2, default=str)}"
    if _log_file:
        _log_file.write(file_line + "\n")


def log_vision_request(prompt: str, image_size: int = 0, backend: str = ""):
    """Log a vision model request."""
    tag = f"[{backend}] " if backend else ""
    log("VISION", f"{tag}→ Sending 1 image ({image_size // 1024}KB)")
    for i, line in enumerate(prompt.strip().split("\n")):
        prefix = "  Prompt: " if i == 0 else "          "
        log("VISION", f"{tag}{prefix}{line}")


def log_vision_response(response: str, duration_ms: float, backend: str = ""):
    """Log a vision model response."""
    tag = f"[{backend}] " if backend else ""
    for i, line in enumerate(response.strip().split("\n")):
        prefix = f"← Response ({duration_ms:.0f}ms): " if i == 0 else "  " + " " * 20
        log("VISION", f"{tag}{prefix}{line}")


def log_tier(tier: str, element_key: str, detail: str = ""):
    """Log an adaptive finder tier transition."""
    log("FINDER", f"[{tier}] {element_key}" + (f" — {detail}" if detail else ""))


def log_store(mapping_id: str, action: str, detail: str = ""):
    """Log selector memory operations."""
    log("STORE", f"[{mapping_id}] {action}" + (f" — {detail}" if detail else ""))


def close():
    """Flush and close log file."""
    global _log_file, _debug_enabled
    if _log_file:
        _log_file.close()
        _log_file = None
    _debug_enabled = False
