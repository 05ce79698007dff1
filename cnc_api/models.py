
from sqlalchemy import CheckConstraint, UniqueConstraint, func
from .extensions import db
from .utils.time import api_iso_z

ROLE_PARTNER = "partner"
ROLE_ADMIN = "admin"

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_DECLINED = "declined"
STATUS_COMPLETED = "completed"
RESERVATION_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_DECLINED, STATUS_COMPLETED)

# Reservations in these states hold a seat in their slot.
OCCUPYING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)


class User(db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_PARTNER)
    full_name = db.Column(db.String(120), nullable=False)
    restaurant_name = db.Column(db.String(160), index=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(32))
    approved = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    @property
    def display_name(self) -> str:
        return self.restaurant_name or self.full_name


class Availability(db.Model):
    __tablename__ = "availability"
    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Midnight UTC, stored naive.
    date = db.Column(db.DateTime, nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    time_slots = db.relationship(
        "TimeSlot",
        back_populates="availability",
        cascade="all, delete-orphan",
        order_by="TimeSlot.start_time",
    )

    __table_args__ = (
        UniqueConstraint("restaurant_id", "date", name="uq_availability_restaurant_date"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "restaurantId": self.restaurant_id,
            "date": api_iso_z(self.date),
            "timeSlots": [s.to_dict() for s in sorted(self.time_slots, key=lambda s: s.start_time)],
        }


class TimeSlot(db.Model):
    __tablename__ = "time_slots"
    id = db.Column(db.Integer, primary_key=True)
    availability_id = db.Column(db.Integer, db.ForeignKey("availability.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    max_capacity = db.Column(db.Integer, nullable=False, default=1)
    current_bookings = db.Column(db.Integer, nullable=False, default=0)
    # Always written together with current_bookings: current_bookings < max_capacity.
    is_available = db.Column(db.Boolean, nullable=False, default=True)
    # Partner switched this slot off; independent of capacity.
    is_closed = db.Column(db.Boolean, nullable=False, default=False)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    description = db.Column(db.String(255), nullable=False, default="")

    availability = db.relationship("Availability", back_populates="time_slots")

    __table_args__ = (
        UniqueConstraint("availability_id", "start_time", "end_time", name="uq_time_slot_window"),
        CheckConstraint("current_bookings >= 0", name="ck_time_slot_bookings_non_negative"),
    )

    @property
    def bookable(self) -> bool:
        return self.is_available and not self.is_closed and self.current_bookings < self.max_capacity

    def to_dict(self):
        return {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "maxCapacity": self.max_capacity,
            "currentBookings": self.current_bookings,
            "isAvailable": self.is_available,
            "isClosed": self.is_closed,
            "bookable": self.bookable,
            "price": float(self.price or 0),
            "description": self.description or "",
        }


class Reservation(db.Model):
    __tablename__ = "reservations"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    contact = db.Column(db.String(32))
    restaurant_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    slot_id = db.Column(db.Integer, db.ForeignKey("time_slots.id", ondelete="SET NULL"), index=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    number_of_guests = db.Column(db.Integer, nullable=False, default=1)
    instructions = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
    subscribe_to_promotions = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    restaurant = db.relationship("User")

    @property
    def time_label(self) -> str:
        return f"{self.start_time} - {self.end_time}"
