"""
app.py — Flask Application Factory for the Flood Verification service.
"""
import os
import logging

import click
from flask import Flask
from flask_cors import CORS
from pythonjsonlogger import jsonlogger

from config import config_map
from extensions import db, limiter

# ── Logging ────────────────────────────────────────────────────────────────────
handler = logging.StreamHandler()
handler.setFormatter(jsonlogger.JsonFormatter(
    "%(asctime)s %(levelname)s %(name)s %(message)s"
))
logging.basicConfig(level=logging.INFO, handlers=[handler])

logger = logging.getLogger(__name__)


def create_app(env: str = None) -> Flask:
    """Application factory."""
    env = env or os.environ.get("FLASK_ENV", "development")
    cfg = config_map.get(env, config_map["default"])

    app = Flask(__name__)
    app.config.from_object(cfg)

    # ── Ensure directories exist ───────────────────────────────────────────────
    try:
        data_dir = os.path.join(os.path.dirname(__file__), "data")
        os.makedirs(data_dir, exist_ok=True)
    except OSError:
        pass

    # ── Extensions ────────────────────────────────────────────────────────────
    db.init_app(app)
    CORS(app, origins="same-origin")
    limiter.init_app(app)

    # ── Verification pipeline ─────────────────────────────────────────────────
    from verifier import build_orchestrator
    from verifier.store import ReportStore
    app.extensions["verifier"] = build_orchestrator(app.config, ReportStore(db))

    # ── Blueprints ────────────────────────────────────────────────────────────
    from blueprints.api import api_bp
    app.register_blueprint(api_bp, url_prefix="/api/v1")

    # ── CLI ───────────────────────────────────────────────────────────────────
    @app.cli.command("bulk-verify")
    @click.option("--limit", default=50, show_default=True, type=click.IntRange(min=1),
                  help="Maximum number of pending reports to verify.")
    def bulk_verify_command(limit):
        """Run AI verification over pending reports (cron entry point)."""
        logger.info("Starting bulk verification process (limit=%d)", limit)
        results = app.extensions["verifier"].verify_bulk(limit)
        for key in ("processed", "verified", "disputed", "failed"):
            click.echo(f"{key}: {results[key]}")

    # ── DB init ───────────────────────────────────────────────────────────────
    with app.app_context():
        try:
            db.create_all()
            logger.info("Database tables created / verified.")
        except Exception as e:
            logger.error("Failed to initialize database: %s", e)

    logger.info("Flood verification app created [env=%s]", env)
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
