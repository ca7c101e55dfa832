from __future__ import annotations

from datetime import datetime, date, time
from typing import Optional, List, Literal, Dict
from pydantic import BaseModel, ConfigDict, Field, EmailStr

from .models import AppointmentStatus, ConfirmationState, UserRole

UserRoleName = Literal["client", "professional", "admin"]


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class SlotOut(BaseModel):
    time: str
    available: bool


class SlotsResponse(BaseModel):
    professional_id: str
    date: date
    service_id: str
    slots: List[SlotOut]


class CalendarResponse(BaseModel):
    professional_id: str
    service_id: str
    days: Dict[str, List[SlotOut]]


class CreateProfileRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=120)
    full_name: str = Field(..., min_length=1, max_length=120)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=7, max_length=30)
    address: Optional[str] = Field(None, max_length=300)
    user_role: UserRoleName = "client"


class ProfileOut(OrmModel):
    id: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    user_role: UserRole


class CreateServiceRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[str] = None
    duration: int = Field(..., gt=0, le=24 * 60)
    price: float = Field(..., ge=0)


class UpdateServiceRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    price: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ServiceOut(OrmModel):
    id: str
    professional_id: str
    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    duration: int
    price: float
    is_active: bool


class CreateCategoryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")


class ServiceCategoryOut(OrmModel):
    id: str
    name: str
    color: Optional[str] = None


class ProfessionalListingOut(BaseModel):
    id: str
    full_name: str
    phone: Optional[str] = None
    average_rating: Optional[float] = None
    review_count: int
    services: List[ServiceOut]


class CreateAvailabilityRequest(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: time
    end_time: time
    is_available: bool = True


class UpdateAvailabilityRequest(BaseModel):
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_available: Optional[bool] = None


class AvailabilityOut(OrmModel):
    id: str
    professional_id: str
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool


class BlockTimeRequest(BaseModel):
    date: date
    start_time: time
    end_time: time
    reason: Optional[str] = Field(None, max_length=300)


class BlockedSlotOut(OrmModel):
    id: str
    professional_id: str
    date: date
    start_time: time
    end_time: time
    reason: Optional[str] = None


class BookAppointmentRequest(BaseModel):
    professional_id: str
    service_id: str
    date: date
    time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    notes: Optional[str] = Field(None, max_length=1000)


class ChangeStatusRequest(BaseModel):
    status: Optional[AppointmentStatus] = None
    appointment_confirmation: Optional[ConfirmationState] = None


class AppointmentOut(OrmModel):
    id: str
    client_id: str
    professional_id: str
    service_id: str
    appointment_date: datetime
    status: AppointmentStatus
    appointment_confirmation: ConfirmationState
    notes: Optional[str] = None


class NotificationOut(OrmModel):
    id: str
    appointment_id: Optional[str] = None
    type: str
    title: str
    message: str
    read: bool
    created_at: datetime


class NotificationsResponse(BaseModel):
    notifications: List[NotificationOut]
    unread: int


class CreateReviewRequest(BaseModel):
    appointment_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewOut(OrmModel):
    id: str
    client_id: str
    professional_id: str
    service_id: str
    appointment_id: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime


class DashboardResponse(BaseModel):
    role: UserRole
    unread_notifications: int
    upcoming_appointments: Optional[List[AppointmentOut]] = None
    today_appointments: Optional[List[AppointmentOut]] = None
    services: Optional[List[ServiceOut]] = None
    availability: Optional[List[AvailabilityOut]] = None
    directory: Optional[Dict[str, List[ProfileOut]]] = None
