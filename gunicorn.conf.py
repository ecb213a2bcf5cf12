"""Gunicorn configuration.

Run with:
    gunicorn -c gunicorn.conf.py "orgvault.flask_app:create_app()"

Secrets are read by orgvault.config.settings from /run/secrets (Docker
secrets) with environment variable fallback; the post_fork hook only reports
what each worker will see.
"""
import os
from pathlib import Path

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
accesslog = "-"

REQUIRED_SECRETS = {
    "FLASK_SECRET_KEY": "flask_secret_key",
    "SPONSORSHIP_TOKEN_KEY": "sponsorship_token_key",
    "AUDIT_LOG_SIGNING_KEY": "audit_log_signing_key",
}


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Checks that each required secret is available either as a Docker secret
    or as an environment variable. Demo mode generates the missing ones, so
    only a warning is logged there.
    """
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    secrets_dir = Path("/run/secrets")
    mounted = set()
    if secrets_dir.exists() and secrets_dir.is_dir():
        mounted = {p.name for p in secrets_dir.glob("*")}
        if mounted:
            worker.log.info(f"Found {len(mounted)} secrets in /run/secrets")

    missing = [
        env_name
        for env_name, secret_name in REQUIRED_SECRETS.items()
        if secret_name not in mounted and not os.environ.get(env_name)
    ]
    if not missing:
        return

    if demo_mode:
        worker.log.warning(f"Secrets not provided, demo defaults will be used: {', '.join(missing)}")
    else:
        worker.log.error(f"Missing required secrets: {', '.join(missing)}")
