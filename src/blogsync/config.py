"""Resolved Write.as connection settings.

Reads connection settings from CLI args, environment variables, .env
files, the writeas-cli user file, and YAML config fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > ~/.writeas/user.json
    > YAML config > Built-in defaults

Environment variables:
    WA_URL: API base URL (optional, default: https://write.as/api)
    WA_TOKEN: Access token (required for commands that talk to the API)
    WA_USER: Username (optional, used by the token command)
    WA_INSECURE: Skip SSL verification (optional, default: false)
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from .config_schema import DEFAULT_API_URL, WriteAsConfig

logger = logging.getLogger(__name__)

ENV_URL = "WA_URL"
ENV_TOKEN = "WA_TOKEN"
ENV_USER = "WA_USER"
ENV_INSECURE = "WA_INSECURE"


@dataclass
class Config:
    api_url: str = DEFAULT_API_URL
    token: str = ""
    username: str = ""
    insecure: bool = False
    debug: bool = False
    timeout: float = 30.0


def user_file() -> Path:
    """Path of the user file written by writeas-cli."""
    return Path.home() / ".writeas" / "user.json"


def load_user(path: Path | None = None) -> tuple[str, str]:
    """Return ``(username, token)`` from the writeas-cli user file.

    Falls back to ``WA_USER`` and ``WA_TOKEN`` when the file is missing,
    unreadable, or holds no token.
    """
    fallback = (os.getenv(ENV_USER, ""), os.getenv(ENV_TOKEN, ""))
    path = path or user_file()
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as exc:
        logger.debug(
            "error reading %s, trying $%s instead: %s", path, ENV_TOKEN, exc
        )
        return fallback

    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        logger.debug("no token found in %s, trying $%s instead", path, ENV_TOKEN)
        return fallback

    user = data.get("user") or {}
    return user.get("username", "") if isinstance(user, dict) else "", token


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the API URL is malformed.
    """
    config.api_url = config.api_url.strip()

    if not config.api_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid API URL '{config.api_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.api_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid API URL '{config.api_url}': URL must include a hostname"
        )

    config.api_url = config.api_url.removesuffix("/")

    if config.insecure:
        logger.warning(
            "SSL verification disabled (insecure=True). Use only for development."
        )


def load_config(
    url: str | None = None,
    token: str | None = None,
    username: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    fallbacks: WriteAsConfig | None = None,
    require_token: bool = True,
) -> Config:
    """Load connection settings with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override API URL.
        token: Override access token.
        username: Override username.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        fallbacks: The ``writeas`` section of the YAML config.
        require_token: Raise if no token can be found anywhere.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a token is required but missing, or the URL is
            malformed.
    """
    fb = fallbacks or WriteAsConfig()
    file_user, file_token = load_user()

    api_url = url or os.getenv(ENV_URL) or fb.url
    final_token = token or os.getenv(ENV_TOKEN) or file_token or fb.token or ""
    final_user = (
        username or os.getenv(ENV_USER) or file_user or fb.username or ""
    )

    if require_token and not final_token:
        raise ValueError(
            f"Write.as access token not found. Set {ENV_TOKEN}, log in with "
            "writeas-cli, or add 'token' to the writeas section of config.yml."
        )

    if insecure:
        final_insecure = True
    else:
        env_insecure = os.getenv(ENV_INSECURE)
        if env_insecure is not None:
            final_insecure = env_insecure.lower() in ("true", "1", "yes", "on")
        else:
            final_insecure = fb.insecure

    config = Config(
        api_url=api_url,
        token=final_token.strip(),
        username=final_user.strip(),
        insecure=final_insecure,
        debug=debug,
        timeout=fb.timeout,
    )

    validate_config(config)

    return config
