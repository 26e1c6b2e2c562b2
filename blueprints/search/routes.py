# blueprints/search/routes.py
from __future__ import annotations
from flask import Blueprint, jsonify, request

from extensions import db
from .cache import get_search_cache
from .schemas import SearchFilters
from .services import SearchService

api_bp = Blueprint("search_api", __name__)


def _service() -> SearchService:
    return SearchService(db.session, get_search_cache())


@api_bp.get("/restaurants")
def list_restaurants():
    filters = SearchFilters.from_args(request.args)
    return jsonify(_service().search(filters).to_json())


@api_bp.get("/restaurants/search")
def advanced_search():
    filters = SearchFilters.from_args(request.args)
    q = (request.args.get("q") or "").strip()
    return jsonify(_service().advanced_search(q, filters).to_json())


@api_bp.get("/restaurants/suggestions")
def suggestions():
    return jsonify({"suggestions": _service().suggest(request.args.get("q", ""))})


# ----- cache administration -----
@api_bp.post("/admin/search-cache/clear")
def clear_search_cache():
    get_search_cache().clear()
    return jsonify({"message": "cache cleared"})


@api_bp.get("/admin/search-cache/stats")
def search_cache_stats():
    return jsonify(get_search_cache().stats())
