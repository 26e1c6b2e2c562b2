from flask import Blueprint

bp = Blueprint("core", __name__)

# routes register handlers on bp at import time
from . import routes  # noqa: E402,F401
