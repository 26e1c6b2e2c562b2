from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    CheckConstraint, Enum, ForeignKey, UniqueConstraint, Index, Boolean, DateTime,
    Integer, String, Text
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db

# ---------- Enums ----------
class ReservationStatus(PyEnum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class SubscriptionStatus(PyEnum):
    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


# ---------- Tenants ----------
class Organization(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subscription_status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus), default=SubscriptionStatus.INACTIVE, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    restaurants = relationship("Restaurant", back_populates="organization")

    def __repr__(self):
        return f"<Organization {self.name}>"


# ---------- Restaurants ----------
class Restaurant(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    org_id: Mapped[int] = mapped_column(ForeignKey("organization.id", ondelete="CASCADE"), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slogan: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    place: Mapped[str] = mapped_column(String(255), nullable=False, default="", index=True)  # nearby city / landmark
    area: Mapped[str] = mapped_column(String(255), nullable=False, default="", index=True)
    genre: Mapped[str] = mapped_column(String(120), nullable=False, default="", index=True)  # cuisine
    budget: Mapped[str] = mapped_column(String(8), nullable=False, default="$$")
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text)
    address: Mapped[str | None] = mapped_column(String(500))
    phone: Mapped[str | None] = mapped_column(String(20))
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="Asia/Kathmandu")
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    organization = relationship("Organization", back_populates="restaurants")
    opening_hours = relationship("OpeningHour", back_populates="restaurant",
                                 cascade="all, delete-orphan", order_by="OpeningHour.weekday")
    images = relationship("Image", back_populates="restaurant",
                          cascade="all, delete-orphan", order_by="Image.display_order")

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_restaurant_capacity_positive"),
    )

    def __repr__(self):
        return f"<Restaurant {self.slug}>"


class OpeningHour(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurant.id", ondelete="CASCADE"), nullable=False, index=True)
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)  # 0=Sun .. 6=Sat
    open_time: Mapped[str] = mapped_column(String(5), nullable=False)  # "HH:MM", restaurant local time
    close_time: Mapped[str] = mapped_column(String(5), nullable=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    restaurant = relationship("Restaurant", back_populates="opening_hours")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "weekday", name="uq_opening_hour_restaurant_weekday"),
    )


class Image(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurant.id", ondelete="CASCADE"), nullable=False, index=True)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    alt: Mapped[str | None] = mapped_column(String(255))
    is_main: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    restaurant = relationship("Restaurant", back_populates="images")


# ---------- Customers & reservations ----------
class Customer(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Customer {self.email}>"


class Reservation(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurant.id", ondelete="CASCADE"), nullable=False)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customer.id", ondelete="RESTRICT"), nullable=False, index=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)  # naive UTC
    duration_min: Mapped[int] = mapped_column(Integer, nullable=False, default=90)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    restaurant = relationship("Restaurant")
    customer = relationship("Customer")

    __table_args__ = (
        Index("ix_reservation_restaurant_starts_at", "restaurant_id", "starts_at"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self):
        return f"<Reservation {self.id} {self.status.value} x{self.party_size}>"


# ---------- Reviews ----------
class Review(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurant.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id: Mapped[int | None] = mapped_column(ForeignKey("customer.id", ondelete="SET NULL"))
    customer_name: Mapped[str | None] = mapped_column(String(255))
    rating: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..5
    title: Mapped[str | None] = mapped_column(String(255))
    comment: Mapped[str | None] = mapped_column(Text)
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    restaurant = relationship("Restaurant")

    __table_args__ = (
        Index("ix_review_restaurant_approved", "restaurant_id", "is_approved"),
    )
