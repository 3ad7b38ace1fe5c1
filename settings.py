import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv(override=True)  # load variables from .env if present

SYSTEM_PROMPT = (
    "You are DumbGPT, an AI assistant that deliberately gives unhelpful, nonsensical, rude, "
    "and comically wrong answers while maintaining a confident tone. Like you're a stupid "
    "young brother. Be drama queen and passive aggressive. Keep answers short and to the point."
)


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}")


@dataclass
class Settings:
    """Relay configuration, read from the environment (and .env)."""

    openai_api_key: Optional[str] = None
    model: str = "gpt-3.5-turbo"
    temperature: float = 1.2
    max_tokens: int = 200
    upstream_timeout: float = 30.0
    system_prompt: str = SYSTEM_PROMPT

    max_history: int = 6
    max_message_length: int = 500

    api_rate_limit: int = 100
    api_rate_window: float = 15 * 60
    chat_rate_limit: int = 10
    chat_rate_window: float = 60

    daily_message_limit: int = 50
    session_ttl: float = 24 * 60 * 60
    sweep_interval: float = 60 * 60

    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            model=os.getenv("OPENAI_MODEL", "gpt-3.5-turbo"),
            temperature=_float("MODEL_TEMPERATURE", 1.2),
            max_tokens=_int("MODEL_MAX_TOKENS", 200),
            upstream_timeout=_float("UPSTREAM_TIMEOUT_SECONDS", 30.0),
            max_history=_int("MAX_HISTORY_MESSAGES", 6),
            max_message_length=_int("MAX_MESSAGE_LENGTH", 500),
            api_rate_limit=_int("API_RATE_LIMIT", 100),
            api_rate_window=_float("API_RATE_WINDOW_SECONDS", 15 * 60),
            chat_rate_limit=_int("CHAT_RATE_LIMIT", 10),
            chat_rate_window=_float("CHAT_RATE_WINDOW_SECONDS", 60),
            daily_message_limit=_int("DAILY_MESSAGE_LIMIT", 50),
            session_ttl=_float("SESSION_TTL_SECONDS", 24 * 60 * 60),
            sweep_interval=_float("SWEEP_INTERVAL_SECONDS", 60 * 60),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int("PORT", 3001),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
