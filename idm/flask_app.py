"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with its blueprints, error handlers and user DAO.
"""
from __future__ import annotations
from typing import Optional

from flask import Flask

from idm.config import AppConfig, load_settings
from idm.core.user_dao import OktaUserDao
from idm.core.okta import OktaClient


def build_user_dao(cfg: AppConfig, listeners=None) -> OktaUserDao:
    """Build an OktaUserDao from configuration."""
    client = OktaClient(cfg.okta_org_url, cfg.okta_api_token, timeout=cfg.request_timeout)
    return OktaUserDao(
        client,
        listeners=listeners,
        max_search_results=cfg.max_search_results,
        initial_groups=cfg.initial_groups,
        load_groups=cfg.load_groups,
        read_only=cfg.read_only,
    )


def create_app(dao: Optional[OktaUserDao] = None, config: Optional[AppConfig] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        dao: Pre-built user DAO (e.g. with a FallbackDaoListener); built from settings when omitted
        config: Settings; loaded from the environment when omitted
    """
    cfg = config or load_settings()

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["DEMO_MODE"] = cfg.demo_mode
    app.extensions["idm_user_dao"] = dao or build_user_dao(cfg)

    from idm.api import errors, groups, health, users

    app.register_blueprint(health.bp)
    app.register_blueprint(users.bp)
    app.register_blueprint(groups.bp)

    errors.register_error_handlers(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    app.logger.info("Mode=%s; user API registered at /api/users", mode_label)
    return app
