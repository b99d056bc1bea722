"""Environment variable validation and management."""

import os
import logging
from typing import Dict

logger = logging.getLogger(__name__)

class EnvironmentError(Exception):
    """Raised when required environment variables are missing or invalid."""
    pass

def validate_environment(*, require_api_key: bool = False) -> None:
    """Validate critical environment variables.

    Raises EnvironmentError if validation fails.
    """
    # API key is only required for network operations.
    required_vars: Dict[str, str] = {}
    if require_api_key:
        required_vars["ANTHROPIC_API_KEY"] = "Anthropic API key"

    optional_vars = {
        "ANTHROPIC_API_KEY": "Anthropic API key (needed for generation and adaptation)",
        "ANTHROPIC_MODEL": "Model identifier",
        "LLM_TIMEOUT": "Request timeout in seconds",
    }

    # Check required variables
    missing = []
    for var, description in required_vars.items():
        if not os.getenv(var):
            missing.append(f"{var} ({description})")

    if missing:
        raise EnvironmentError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    # Validate URLs
    url_vars = {"ANTHROPIC_API_URL"}
    for var in url_vars:
        value = os.getenv(var)
        if value and not (value.startswith("http://") or value.startswith("https://")):
            raise EnvironmentError(f"Invalid URL format for {var}: {value}")

    for var in ("ANTHROPIC_MAX_TOKENS", "LLM_TIMEOUT"):
        value = os.getenv(var)
        if value:
            try:
                if float(value) <= 0:
                    raise ValueError(value)
            except ValueError as exc:
                raise EnvironmentError(f"{var} must be a positive number, got '{value}'") from exc

    # Log optional variables status
    for var, description in optional_vars.items():
        if var in required_vars:
            continue
        if not os.getenv(var):
            logger.warning(f"Optional environment variable not set: {var} ({description})")

def get_env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default

def get_env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default
