"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    GEMINI_API_KEY                   — Default Gemini key when a submission carries none
    GEMINI_BASE_URL                  — generateContent base (…/v1beta/models)
    GEMINI_MODELS                    — Comma-separated model chain, tried in order
    GEMINI_TEMPERATURE               — Sampling temperature sent with every request
    TRANSIENT_RETRY_DELAY_SECONDS    — Pause after a 500/503 before the next model
    FIGMA_API_BASE                   — Figma REST base URL
    FIGMA_RENDER_SCALE               — Render scale for /images (default: 2)
    HTTP_TIMEOUT_SECONDS             — Timeout for Figma and image downloads
    SCAN_PROGRESS_DURATION_SECONDS   — Time the progress bar needs to reach the ceiling
    SCAN_PROGRESS_INTERVAL_SECONDS   — Progress tick interval
    SCAN_PROGRESS_CEILING            — Max percent shown before the scan really ends
    SCAN_COMPLETION_DELAY_SECONDS    — Pause on 100% before handing off to review
    PUBLIC_BASE_URL                  — Origin used when building share links
    CORS_ORIGINS                     — Comma-separated origins for the browser client
    GEMINI_TIMEOUT_SECONDS           — Optional per-attempt timeout for Gemini calls
    SESSION_MAX_COUNT                — Live sessions kept before the least recently used is evicted
    SESSION_IDLE_TTL_SECONDS         — Idle time after which a session is evicted

AI Call Timeout:
    By default the model-fallback loop imposes no per-attempt timeout on the
    Gemini request. Setting GEMINI_TIMEOUT_SECONDS turns a hung attempt into a
    network error, which moves on to the next model. HTTP_TIMEOUT_SECONDS only
    governs Figma traffic.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/models"
)
GEMINI_MODELS: list[str] = _csv(
    os.getenv("GEMINI_MODELS", "gemini-2.0-flash,gemini-1.5-flash,gemini-1.5-flash-8b")
)
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", 0.4))
TRANSIENT_RETRY_DELAY_SECONDS = float(os.getenv("TRANSIENT_RETRY_DELAY_SECONDS", 2.0))
# Unset means no timeout: a hung request stalls that model's attempt
GEMINI_TIMEOUT_SECONDS = (
    float(os.getenv("GEMINI_TIMEOUT_SECONDS")) if os.getenv("GEMINI_TIMEOUT_SECONDS") else None
)

FIGMA_API_BASE = os.getenv("FIGMA_API_BASE", "https://api.figma.com/v1")
FIGMA_RENDER_SCALE = int(os.getenv("FIGMA_RENDER_SCALE", 2))
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 30.0))

# Progress animation (visual only, decoupled from real completion)
SCAN_PROGRESS_DURATION_SECONDS = float(os.getenv("SCAN_PROGRESS_DURATION_SECONDS", 6.0))
SCAN_PROGRESS_INTERVAL_SECONDS = float(os.getenv("SCAN_PROGRESS_INTERVAL_SECONDS", 0.08))
SCAN_PROGRESS_CEILING = float(os.getenv("SCAN_PROGRESS_CEILING", 90.0))
SCAN_COMPLETION_DELAY_SECONDS = float(os.getenv("SCAN_COMPLETION_DELAY_SECONDS", 0.7))

# Live session bounds
SESSION_MAX_COUNT = int(os.getenv("SESSION_MAX_COUNT", 200))
SESSION_IDLE_TTL_SECONDS = float(os.getenv("SESSION_IDLE_TTL_SECONDS", 3600.0))

# Browser client
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:5173").rstrip("/")
CORS_ORIGINS: list[str] = _csv(
    os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    )
)
