"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

SECRETS_DIR = Path("/run/secrets")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from %s", secret_name, SECRETS_DIR)
                return secret_value
        except OSError as exc:
            logger.warning("Failed to read %s/%s: %s", SECRETS_DIR, secret_name, exc)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_bool(var_name: str, default: bool) -> bool:
    return os.environ.get(var_name, str(default)).strip().lower() == "true"


def _env_int(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got '{raw}'")


@dataclass
class AppConfig:
    """Application configuration container."""
    demo_mode: bool

    # Okta
    okta_org_url: str = ""
    okta_api_token: str = ""
    request_timeout: int = 5

    # OktaUserDao
    max_search_results: int = 0
    initial_groups: list[str] = field(default_factory=list)
    load_groups: bool = True
    read_only: bool = False

    # HTTP API static bearer token
    api_token: str = ""


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets.

    Raises:
        RuntimeError: If a required value is missing outside demo mode
    """
    demo_mode = _env_bool("DEMO_MODE", False)

    okta_org_url = os.environ.get("OKTA_ORG_URL", "").strip()
    if not okta_org_url:
        if not demo_mode:
            raise RuntimeError("Environment variable OKTA_ORG_URL is required in production mode.")
        okta_org_url = "https://example.okta.com"
        logger.info("[demo-mode] Using default OKTA_ORG_URL=%s", okta_org_url)

    okta_api_token = _load_secret_from_file("okta_api_token", "OKTA_API_TOKEN")
    if not okta_api_token:
        if not demo_mode:
            raise RuntimeError("OKTA_API_TOKEN not found in /run/secrets or environment")
        okta_api_token = "demo-okta-token"

    api_token = _load_secret_from_file("idm_api_token", "IDM_API_TOKEN")
    if not api_token:
        if not demo_mode:
            raise RuntimeError("IDM_API_TOKEN not found in /run/secrets or environment")
        api_token = secrets.token_urlsafe(32)
        logger.info("[demo-mode] Generated temporary IDM_API_TOKEN")

    initial_groups = [
        group.strip()
        for group in os.environ.get("IDM_INITIAL_GROUPS", "").split(",")
        if group.strip()
    ]

    max_search_results = _env_int("IDM_MAX_SEARCH_RESULTS", 0)
    if max_search_results < 0:
        raise RuntimeError("IDM_MAX_SEARCH_RESULTS must not be negative")

    config = AppConfig(
        demo_mode=demo_mode,
        okta_org_url=okta_org_url,
        okta_api_token=okta_api_token,
        request_timeout=_env_int("OKTA_REQUEST_TIMEOUT", 5),
        max_search_results=max_search_results,
        initial_groups=initial_groups,
        load_groups=_env_bool("IDM_LOAD_GROUPS", True),
        read_only=_env_bool("IDM_READ_ONLY", False),
        api_token=api_token,
    )

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    logger.info(
        "Mode=%s; okta=%s; max_search_results=%s; read_only=%s",
        mode_label, okta_org_url, max_search_results, config.read_only,
    )
    if demo_mode:
        logger.warning("Demo credentials in use. Do not deploy with these defaults.")

    return config
