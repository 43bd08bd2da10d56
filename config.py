# config.py
# ------------------------------------------------------------
# Runtime settings for the CLI, the analyzers and the relay server.
#
# It:
#   - loads variables from a .env file into os.environ
#   - builds one Settings object that callers pass around
#     (nothing here is cached at module level)
#   - configures the logging module once per process
# ------------------------------------------------------------

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from errors import ConfigurationError


# Default location of the stored API key (one JSON entry)
DEFAULT_CREDENTIAL_FILE = Path.home() / ".dog_health" / "credentials.json"

ANALYSIS_MODES = ("direct", "relay")
KEY_TRANSPORTS = ("header", "query")


@dataclass(frozen=True)
class Settings:
    """
    Everything the analysis pipeline needs to know about its environment.

    google_api_key:
        Provider key held by the relay server. The direct variant ignores
        it and reads the end user's key from the credential store instead.

    key_transport:
        "header" sends the key as x-goog-api-key, "query" as ?key=.
    """
    google_api_key: Optional[str] = None
    model_name: str = "gemini-1.5-pro"
    api_base: str = "https://generativelanguage.googleapis.com"
    key_transport: str = "header"
    temperature: float = 0.7
    max_output_tokens: int = 3000
    analysis_mode: str = "direct"
    relay_url: Optional[str] = None
    relay_token: Optional[str] = None
    request_timeout: float = 60.0
    max_retries: int = 2
    retry_backoff: float = 0.5
    credential_file: Path = DEFAULT_CREDENTIAL_FILE
    log_level: str = "INFO"
    relay_host: str = "127.0.0.1"
    relay_port: int = 8000


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    When env is None the process environment is used, after loading
    any .env file found in the working directory.

    Raises:
        ConfigurationError: for unparseable numbers or unknown modes.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    mode = (env.get("ANALYSIS_MODE") or "direct").strip().lower()
    if mode not in ANALYSIS_MODES:
        raise ConfigurationError(
            f"ANALYSIS_MODE must be one of {', '.join(ANALYSIS_MODES)}, got {mode!r}"
        )

    transport = (env.get("GEMINI_KEY_TRANSPORT") or "header").strip().lower()
    if transport not in KEY_TRANSPORTS:
        raise ConfigurationError(
            f"GEMINI_KEY_TRANSPORT must be one of {', '.join(KEY_TRANSPORTS)}, got {transport!r}"
        )

    credential_file = env.get("CREDENTIAL_FILE")

    return Settings(
        google_api_key=env.get("GOOGLE_AI_API_KEY") or None,
        model_name=env.get("GEMINI_MODEL") or "gemini-1.5-pro",
        api_base=(env.get("GEMINI_API_BASE") or "https://generativelanguage.googleapis.com").rstrip("/"),
        key_transport=transport,
        analysis_mode=mode,
        relay_url=(env.get("RELAY_URL") or "").rstrip("/") or None,
        relay_token=env.get("RELAY_TOKEN") or None,
        request_timeout=_read_float(env, "REQUEST_TIMEOUT", 60.0),
        max_retries=_read_int(env, "MAX_RETRIES", 2),
        retry_backoff=_read_float(env, "RETRY_BACKOFF", 0.5),
        credential_file=Path(credential_file).expanduser() if credential_file else DEFAULT_CREDENTIAL_FILE,
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        relay_host=env.get("RELAY_HOST") or "127.0.0.1",
        relay_port=_read_int(env, "RELAY_PORT", 8000),
    )


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure logging based on the configured level or the verbose flag."""
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    # urllib3 logs every retry at WARNING, which is enough
    logging.getLogger("urllib3").setLevel(logging.WARNING)
