"""Runtime configuration assembled from command-line flags and the environment.

Environment variables may come from a .env file in the working directory,
loaded before the settings are built. Flags win over environment values.
"""

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_MODEL = "o3-mini"
DEFAULT_REASONING_EFFORT = "high"
REASONING_EFFORTS = ("low", "medium", "high", "none")

API_KEY_ENV = "OPENAI_API_KEY"
MODEL_ENV = "CHATTERM_MODEL"
BASE_URL_ENV = "OPENAI_BASE_URL"


class ConfigError(Exception):
    pass


class Settings(BaseModel):
    api_key: str
    model: str = DEFAULT_MODEL
    # None omits reasoning_effort from requests (non-reasoning models)
    reasoning_effort: str | None = DEFAULT_REASONING_EFFORT
    base_url: str | None = None
    context_path: Path | None = None
    output_path: Path | None = None
    # None sends the full history on every request, with no cap
    max_context_tokens: int | None = Field(default=None, gt=0)
    approximate_tokens: bool = False


def load_environment(dotenv_path: str | Path | None = None) -> None:
    """Populate os.environ from a .env file without overriding real variables."""
    load_dotenv(dotenv_path or Path.cwd() / ".env")


def load_settings(args: object, environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from parsed CLI arguments and environment variables.

    Raises:
        ConfigError: If the API key is missing or a value is invalid.
    """
    env = os.environ if environ is None else environ

    api_key = env.get(API_KEY_ENV)
    if not api_key:
        raise ConfigError(
            f"Please set the {API_KEY_ENV} environment variable (or in your .env file)."
        )

    effort = getattr(args, "reasoning_effort", None) or DEFAULT_REASONING_EFFORT
    if effort not in REASONING_EFFORTS:
        raise ConfigError(
            f"Invalid reasoning effort '{effort}'. Choose from: {', '.join(REASONING_EFFORTS)}"
        )

    max_context_tokens = getattr(args, "max_context_tokens", None)
    if max_context_tokens is not None and max_context_tokens <= 0:
        raise ConfigError("--max-context-tokens must be a positive integer")

    return Settings(
        api_key=api_key,
        model=getattr(args, "model", None) or env.get(MODEL_ENV) or DEFAULT_MODEL,
        reasoning_effort=None if effort == "none" else effort,
        base_url=getattr(args, "base_url", None) or env.get(BASE_URL_ENV) or None,
        context_path=getattr(args, "context", None),
        output_path=getattr(args, "output", None),
        max_context_tokens=max_context_tokens,
        approximate_tokens=bool(getattr(args, "approximate_tokens", False)),
    )
