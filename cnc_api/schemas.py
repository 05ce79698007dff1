import datetime as dt
import re

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .models import RESERVATION_STATUSES
from .utils.time import hhmm_to_minutes, parse_day, today_utc

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class SlotWindow(_Camel):
    start_time: str = Field(..., alias="startTime")
    end_time: str = Field(..., alias="endTime")
    id: int | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def hhmm(cls, v: str):
        if not _HHMM.match(v):
            raise ValueError("Time must use 24-hour HH:MM format.")
        return v


class TimeSlotIn(SlotWindow):
    max_capacity: int = Field(1, alias="maxCapacity", ge=1)
    price: float = Field(0, ge=0)
    description: str = Field("", max_length=255)
    is_available: bool = Field(True, alias="isAvailable")

    @field_validator("max_capacity", mode="before")
    @classmethod
    def default_capacity(cls, v):
        # Clients send null/"" to mean "use the default".
        return 1 if v in (None, "") else v

    @field_validator("price", mode="before")
    @classmethod
    def default_price(cls, v):
        return 0 if v in (None, "") else v

    @model_validator(mode="after")
    def end_after_start(self):
        if hhmm_to_minutes(self.end_time) <= hhmm_to_minutes(self.start_time):
            raise ValueError("End time must be after start time.")
        return self


class _DayRequest(_Camel):
    date: dt.date

    @field_validator("date", mode="before")
    @classmethod
    def normalize_day(cls, v):
        return parse_day(v)


class ReplaceAvailabilityRequest(_DayRequest):
    time_slots: list[TimeSlotIn] = Field(..., alias="timeSlots")

    @model_validator(mode="after")
    def unique_windows(self):
        seen = set()
        for slot in self.time_slots:
            key = (slot.start_time, slot.end_time)
            if key in seen:
                raise ValueError(f"Duplicate time slot {slot.start_time}-{slot.end_time}.")
            seen.add(key)
        return self


class CustomSlotRequest(_DayRequest):
    restaurant_id: int = Field(..., alias="restaurantId")
    time_slot: TimeSlotIn = Field(..., alias="timeSlot")


class UpdateSlotRequest(_Camel):
    time_slot: TimeSlotIn = Field(..., alias="timeSlot")


class PatchSlotRequest(_Camel):
    is_available: bool | None = Field(None, alias="isAvailable")
    max_capacity: int | None = Field(None, alias="maxCapacity", ge=1)
    price: float | None = Field(None, ge=0)
    description: str | None = Field(None, max_length=255)


class CreateReservationRequest(_DayRequest):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    contact: str | None = Field(None, max_length=32)
    restaurant: int | str
    time_slot: SlotWindow = Field(..., alias="timeSlot")
    guest_count: int = Field(1, alias="guestCount", ge=1, le=20)
    instructions: str | None = Field(None, max_length=1000)
    subscribe_to_promotions: bool = Field(False, alias="subscribeToPromotions")

    @model_validator(mode="before")
    @classmethod
    def accept_number_of_guests(cls, data):
        if isinstance(data, dict) and "guestCount" not in data and "numberOfGuests" in data:
            data = {**data, "guestCount": data["numberOfGuests"]}
        return data

    @field_validator("date")
    @classmethod
    def not_in_past(cls, v: dt.date):
        if v < today_utc():
            raise ValueError("Reservation date must not be in the past.")
        return v


class StatusUpdateRequest(_Camel):
    status: str

    @field_validator("status")
    @classmethod
    def known_status(cls, v: str):
        v = v.lower()
        if v not in RESERVATION_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(RESERVATION_STATUSES)}.")
        return v
