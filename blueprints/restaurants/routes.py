# blueprints/restaurants/routes.py
from __future__ import annotations
from flask import Blueprint, abort, jsonify, request

from extensions import db
from models import Restaurant
from . import services as svc
from .schemas import OpeningHoursIn, RestaurantIn, RestaurantUpdate, ReviewIn

api_bp = Blueprint("restaurants_api", __name__)


@api_bp.get("/restaurants/<slug>")
def restaurant_detail(slug: str):
    data = svc.restaurant_detail(slug)
    if not data:
        abort(404, description="restaurant not found")
    return jsonify(data)


@api_bp.get("/restaurants/<slug>/reviews")
def restaurant_reviews(slug: str):
    resto = svc.get_by_slug(slug) or abort(404, description="restaurant not found")
    return jsonify({"reviews": svc.approved_reviews(resto)})


@api_bp.post("/reviews")
def create_review():
    payload = request.get_json(silent=True) or {}
    parsed = ReviewIn.model_validate(payload)
    resto = svc.get_by_slug(parsed.restaurant_slug) or abort(404, description="restaurant not found")
    rev = svc.create_review(resto, parsed)
    return jsonify(svc.review_to_dict(rev)), 201


# ----- owner -----
@api_bp.post("/owner/restaurants")
def create_restaurant():
    payload = request.get_json(silent=True) or {}
    parsed = RestaurantIn.model_validate(payload)
    try:
        resto = svc.create_restaurant(parsed)
    except svc.SlugTaken as e:
        abort(409, description=str(e))
    if resto is None:
        abort(404, description="organization not found")
    return jsonify(svc.restaurant_to_dict(resto)), 201


@api_bp.put("/owner/restaurants/<int(max=2147483647):restaurant_id>")
def update_restaurant(restaurant_id: int):
    payload = request.get_json(silent=True) or {}
    parsed = RestaurantUpdate.model_validate(payload)
    resto = db.session.get(Restaurant, restaurant_id) or abort(404, description="restaurant not found")
    try:
        resto = svc.update_restaurant(resto, parsed)
    except svc.SlugTaken as e:
        abort(409, description=str(e))
    return jsonify(svc.restaurant_to_dict(resto))


@api_bp.put("/owner/restaurants/<int(max=2147483647):restaurant_id>/hours")
def set_opening_hours(restaurant_id: int):
    payload = request.get_json(silent=True) or {}
    parsed = OpeningHoursIn.model_validate(payload)
    resto = db.session.get(Restaurant, restaurant_id) or abort(404, description="restaurant not found")
    hours = svc.replace_opening_hours(resto, parsed.open_hours)
    return jsonify({"message": "opening hours updated successfully", "open_hours": hours})


@api_bp.post("/owner/reviews/<int(max=2147483647):review_id>/approve")
def approve_review(review_id: int):
    rev = svc.approve_review(review_id) or abort(404, description="review not found")
    return jsonify(svc.review_to_dict(rev))
