"""Request authentication for the IDM API."""
from __future__ import annotations
import hashlib
import hmac
import logging

from flask import abort, current_app, request

logger = logging.getLogger(__name__)


def require_api_token() -> None:
    """before_request hook enforcing the static bearer token.

    Security:
        - Uses hmac.compare_digest for timing-attack resistance
        - Only a truncated SHA256 of rejected tokens is logged
    """
    cfg = current_app.config["APP_CONFIG"]
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        logger.warning("API request without Bearer token: path=%s", request.path)
        abort(401, description="Authorization header must use Bearer token scheme")

    token = auth_header[7:].strip()
    if not token or not cfg.api_token or not hmac.compare_digest(token, cfg.api_token):
        token_hash = hashlib.sha256(token.encode()).hexdigest()[:12]
        logger.warning("API request with invalid token: token_hash=%s path=%s", token_hash, request.path)
        abort(401, description="Invalid bearer token")
