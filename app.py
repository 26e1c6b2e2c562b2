from __future__ import annotations
import os
from importlib import import_module
from flask import Flask
from config import config_map
from extensions import db, migrate
from sqlalchemy import inspect

def _seed_from_config(app):
    if not app.config.get("SEED_DEMO_DATA"):
        return
    with app.app_context():
        # tables may not exist yet (before `flask db upgrade`)
        if not inspect(db.engine).has_table("restaurant"):
            return

        from seed import seed_demo  # local import, seed imports create_app
        seed_demo()

def init_runtime_state(app: Flask) -> None:
    """Per-process objects shared by all requests of this app."""
    from blueprints.search.cache import SearchCache
    from blueprints.reservations.services import AdmissionGate

    app.extensions["search_cache"] = SearchCache(
        ttl=int(app.config.get("SEARCH_CACHE_TTL", 300)),
        maxsize=int(app.config.get("SEARCH_CACHE_MAXSIZE", 1024)),
    )
    app.extensions["admission_gate"] = AdmissionGate()

def register_blueprints(app: Flask) -> None:
    # core routes must be imported before bp is taken
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp
    from blueprints.availability import api_bp as availability_api_bp
    from blueprints.reservations import api_bp as reservations_api_bp
    from blueprints.search import api_bp as search_api_bp
    from blueprints.restaurants import api_bp as restaurants_api_bp

    # core without prefix: '/health' at the root
    app.register_blueprint(core_bp)
    app.register_blueprint(search_api_bp, url_prefix="/api")
    app.register_blueprint(availability_api_bp, url_prefix="/api")
    app.register_blueprint(reservations_api_bp, url_prefix="/api")
    app.register_blueprint(restaurants_api_bp, url_prefix="/api")

def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    if overrides:
        app.config.update(overrides)

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    init_runtime_state(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app
