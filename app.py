import logging
import os
from pathlib import Path

from flask import Flask, jsonify
from sqlalchemy import text

from models import db
from watchlist_core.errors import install_json_error_handlers
from watchlist_core.api import api_bp
from watchlist_core.watchlist_api import watchlist_bp
from watchlist_core.metrics import metrics_bp
from watchlist_core.settings import TmdbSettings, env_bool

logger = logging.getLogger("movie_watchlists")


def create_app(config=None):
    app = Flask(__name__)

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Load env config
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["API_TOKEN"] = os.getenv("API_TOKEN")
    app.config["TMDB"] = TmdbSettings.from_env()
    app.config["SEED_SAMPLE_DATA"] = env_bool("SEED_SAMPLE_DATA")
    app.json.sort_keys = False

    # Database configuration
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        app.config["SQLALCHEMY_DATABASE_URI"] = database_url
        safe_dest = database_url.split("@", 1)[-1]
        logger.info("Using DATABASE_URL -> %s", safe_dest)
    else:
        instance_db = Path(app.instance_path) / "movie_watchlists.db"
        instance_db.parent.mkdir(parents=True, exist_ok=True)
        logger.info("DB file -> %s", instance_db.resolve())
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{instance_db}"

    # explicit overrides (tests, scripts) win over the environment
    if config:
        app.config.update(config)

    # Installing JSON error handlers & SQLAlchemy
    install_json_error_handlers(app)
    db.init_app(app)

    with app.app_context():
        db.create_all()
        if app.config["SEED_SAMPLE_DATA"]:
            from seed import seed_sample_data
            seed_sample_data()

    # HEALTH CHECK ENDPOINT
    @app.route("/health")
    def health():
        """
        Basic health endpoint for monitoring.
        Returns 200 if DB is reachable, 500 otherwise.
        """
        db_ok = True
        try:
            db.session.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Database health probe failed")
            db_ok = False

        status_code = 200 if db_ok else 500

        return jsonify({"status": "ok" if db_ok else "error", "database": db_ok}), status_code

    # Register blueprints
    app.register_blueprint(api_bp)
    app.register_blueprint(watchlist_bp)
    app.register_blueprint(metrics_bp)

    return app


# Development only
if __name__ == "__main__":
    port = int(os.getenv("PORT", 8000))
    create_app().run(host="0.0.0.0", port=port, debug=True)
