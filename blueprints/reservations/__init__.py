from .routes import api_bp  # noqa: F401
