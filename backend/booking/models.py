from __future__ import annotations

import datetime as dt
from datetime import datetime, time
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field, Index


class UserRole(str, Enum):
    client = "client"
    professional = "professional"
    admin = "admin"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class ConfirmationState(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    no_show = "no_show"


class Profile(SQLModel, table=True):
    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    user_role: UserRole = UserRole.client
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ServiceCategory(SQLModel, table=True):
    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    color: Optional[str] = None  # hex, for the client filter chips
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Service(SQLModel, table=True):
    id: str = Field(primary_key=True)
    professional_id: str = Field(foreign_key="profile.id", index=True)
    name: str
    description: Optional[str] = None
    duration: int  # minutes
    category_id: Optional[str] = Field(default=None, foreign_key="servicecategory.id")
    price: float
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ProfessionalAvailability(SQLModel, table=True):
    id: str = Field(primary_key=True)
    professional_id: str = Field(foreign_key="profile.id")
    day_of_week: int  # 0=Sunday ... 6=Saturday
    start_time: time
    end_time: time
    is_available: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)


Index("idx_availability_professional_day", ProfessionalAvailability.professional_id, ProfessionalAvailability.day_of_week)


class TimeSlot(SQLModel, table=True):
    """A one-off blocked range on a specific date."""
    id: str = Field(primary_key=True)
    professional_id: str = Field(foreign_key="profile.id")
    date: dt.date
    start_time: time
    end_time: time
    is_blocked: bool = True
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


Index("idx_timeslot_professional_date", TimeSlot.professional_id, TimeSlot.date)


class Appointment(SQLModel, table=True):
    id: str = Field(primary_key=True)
    client_id: str = Field(foreign_key="profile.id")
    professional_id: str = Field(foreign_key="profile.id")
    service_id: str = Field(foreign_key="service.id")
    appointment_date: datetime
    status: AppointmentStatus = AppointmentStatus.pending
    appointment_confirmation: ConfirmationState = ConfirmationState.pending
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


Index("idx_appt_professional_date", Appointment.professional_id, Appointment.appointment_date)


class Notification(SQLModel, table=True):
    id: str = Field(primary_key=True)
    user_id: str = Field(foreign_key="profile.id", index=True)
    appointment_id: Optional[str] = Field(default=None, foreign_key="appointment.id")
    type: str
    title: str
    message: str
    read: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ServiceReview(SQLModel, table=True):
    id: str = Field(primary_key=True)
    client_id: str = Field(foreign_key="profile.id")
    professional_id: str = Field(foreign_key="profile.id", index=True)
    service_id: str = Field(foreign_key="service.id")
    appointment_id: str = Field(foreign_key="appointment.id", unique=True)
    rating: int
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
