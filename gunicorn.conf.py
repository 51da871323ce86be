"""Gunicorn configuration for the IDM user API.

Secrets are read by idm.config.settings in each worker, from /run/secrets
(Docker secrets) first and the environment second.
"""
import os

wsgi_app = "idm.flask_app:create_app()"
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
accesslog = "-"


def post_fork(server, worker):
    """Report where the worker will read its secrets from."""
    from pathlib import Path

    secrets_dir = Path("/run/secrets")
    if secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets")
            return
    worker.log.info("No /run/secrets mount, secrets come from the environment")
