"""Configuration for the Swarm Chat backend."""

import os
from dotenv import load_dotenv

load_dotenv()


def get_port(env_var: str, default: int) -> int:
    """Get port from environment or return default."""
    try:
        return int(os.getenv(env_var, default))
    except ValueError:
        print(f"Warning: Invalid {env_var}, using default {default}")
        return default


def get_float(env_var: str, default: float) -> float:
    """Get a float setting from environment or return default."""
    try:
        return float(os.getenv(env_var, default))
    except ValueError:
        print(f"Warning: Invalid {env_var}, using default {default}")
        return default


# ============================================================================
# Language Model Configuration
# ============================================================================

# API key for the OpenAI-compatible endpoint
LLM_API_KEY = os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")

# Optional base URL (OpenRouter, Requesty and other OpenAI-compatible routers)
LLM_BASE_URL = os.getenv("LLM_BASE_URL")

# Model used by every pipeline stage
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4.1-2025-04-14")

# Model used for chat titles and document drafts
TITLE_MODEL = os.getenv("TITLE_MODEL", "gpt-4.1-mini-2025-04-14")

# Lower temperature for more consistent, focused stage responses
LLM_TEMPERATURE = get_float("LLM_TEMPERATURE", 0.2)

# Maximum tool-calling round trips in a single completion
LLM_MAX_TOOL_STEPS = int(os.getenv("LLM_MAX_TOOL_STEPS", "5"))

# ============================================================================
# Pipeline / Streaming Configuration
# ============================================================================

# Deadline for a single stage's model call
STAGE_TIMEOUT_SECONDS = get_float("STAGE_TIMEOUT_SECONDS", 20.0)

# Window after completion in which a resume replays the persisted message
RESUME_GRACE_SECONDS = get_float("RESUME_GRACE_SECONDS", 15.0)

# How long finished streams stay attachable in the registry
STREAM_RETENTION_SECONDS = get_float("STREAM_RETENTION_SECONDS", 60.0)

# TTL for stream id lists kept in Redis
STREAM_ID_TTL_SECONDS = int(os.getenv("STREAM_ID_TTL_SECONDS", str(24 * 60 * 60)))

# Pacing of the formatted stream
WORD_DELAY_SECONDS = get_float("WORD_DELAY_SECONDS", 0.005)
MARKER_DELAY_SECONDS = get_float("MARKER_DELAY_SECONDS", 0.001)

# Chat modes
CHAT_MODEL_SIMPLE = "chat-model"
CHAT_MODEL_REASONING = "chat-model-reasoning"
DEFAULT_CHAT_MODEL = CHAT_MODEL_SIMPLE

# ============================================================================
# Entitlements
# ============================================================================

ENTITLEMENTS_BY_USER_TYPE = {
    "guest": {
        "max_messages_per_day": int(os.getenv("MAX_MESSAGES_PER_DAY_GUEST", "20")),
    },
    "regular": {
        "max_messages_per_day": int(os.getenv("MAX_MESSAGES_PER_DAY_REGULAR", "100")),
    },
}

# ============================================================================
# Storage Configuration
# ============================================================================

# "postgres" (asyncpg pool) or "memory"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "postgres").lower()

# Resumable streams need a durable stream-id store (Redis)
REDIS_URL = os.getenv("REDIS_URL")

# ============================================================================
# Port Configuration
# ============================================================================

# Backend API server port
BACKEND_PORT = get_port("PORT_BACKEND", 8200)

# Frontend dev server port
FRONTEND_PORT = get_port("PORT_FRONTEND", 3000)

# Log level for the API process and CLI
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def get_cors_origins():
    """Generate CORS allowed origins based on port configuration."""
    extra = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
    return [
        f"http://localhost:{FRONTEND_PORT}",
        f"http://127.0.0.1:{FRONTEND_PORT}",
    ] + extra


# ============================================================================
# Tool Configuration
# ============================================================================

# Forecast API used by the getWeather tool
WEATHER_API_URL = os.getenv("WEATHER_API_URL", "https://api.open-meteo.com/v1/forecast")
