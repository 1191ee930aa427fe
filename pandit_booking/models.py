"""Data models for bookings and directory entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class StatusBucket(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"
    UNKNOWN = "unknown"


# Server labels that mean the same thing as a canonical bucket.
STATUS_SYNONYMS = {"accepted": StatusBucket.CONFIRMED.value}


def _ref_id(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        ref = value.get("_id") or value.get("id")
        return str(ref) if ref else None
    if value:
        return str(value)
    return None


def _text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _split_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return []


@dataclass
class PersonRef:
    """A nested display object embedded in a booking (pandit, user, service)."""

    id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional["PersonRef"]:
        # Unpopulated references arrive as bare ids.
        if isinstance(value, dict):
            return cls(
                id=_ref_id(value),
                name=value.get("name"),
                phone=value.get("phone"),
                email=value.get("email"),
            )
        if value:
            return cls(id=str(value))
        return None


@dataclass
class BookingRecord:
    id: str
    status_raw: Optional[str] = None
    puja_date: Optional[str] = None
    date: Optional[str] = None
    puja_time: Optional[str] = None
    pandit: Optional[PersonRef] = None
    devotee: Optional[PersonRef] = None
    service: Optional[PersonRef] = None
    location: Optional[str] = None
    created_at: Optional[str] = None
    saman_list: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "BookingRecord":
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            status_raw=_text(data.get("status")),
            puja_date=_text(data.get("puja_date")),
            date=_text(data.get("date")),
            puja_time=_text(data.get("puja_time")),
            pandit=PersonRef.from_value(data.get("panditid") or data.get("pandit")),
            devotee=PersonRef.from_value(data.get("userid") or data.get("user")),
            service=PersonRef.from_value(data.get("serviceid") or data.get("pujaId")),
            location=data.get("location"),
            created_at=_text(data.get("createdAt")),
            saman_list=data.get("SamanList") or "",
        )

    @property
    def pandit_name(self) -> str:
        return (self.pandit and self.pandit.name) or "Unknown"

    @property
    def devotee_name(self) -> str:
        return (self.devotee and self.devotee.name) or "Devotee"

    @property
    def devotee_phone(self) -> str:
        return (self.devotee and self.devotee.phone) or "N/A"

    @property
    def service_name(self) -> str:
        return (self.service and self.service.name) or "Unknown"

    @property
    def location_display(self) -> str:
        return self.location or "N/A"


@dataclass
class Pandit:
    id: str
    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    experience_years: Optional[int] = None
    languages: List[str] = field(default_factory=list)
    specialties: List[str] = field(default_factory=list)
    bio: str = ""
    is_verified: bool = False
    profile_photo_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Pandit":
        experience = data.get("experienceYears")
        try:
            experience = int(experience) if experience not in (None, "") else None
        except (TypeError, ValueError):
            experience = None
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            name=data.get("name") or "",
            email=data.get("email"),
            phone=data.get("phone"),
            city=data.get("city"),
            experience_years=experience,
            languages=_split_list(data.get("languages")),
            specialties=_split_list(data.get("specialties") or data.get("speciality")),
            bio=data.get("bio") or "",
            is_verified=bool(data.get("is_verified")),
            profile_photo_url=data.get("profile_photo_url"),
        )


@dataclass
class Devotee:
    id: str
    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Devotee":
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            name=data.get("name") or "",
            email=data.get("email"),
            phone=data.get("phone"),
            city=data.get("city"),
            address=data.get("address"),
        )


@dataclass
class Pooja:
    id: str
    name: str = ""
    description: str = ""
    image_url: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Pooja":
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            name=data.get("name") or "",
            description=data.get("description") or "",
            image_url=data.get("imageUrl") or "",
        )

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "imageUrl": self.image_url,
        }


@dataclass
class Session:
    """Logged-in user context passed explicitly to user-scoped pages."""

    user_id: str
    token: Optional[str] = None
    name: str = ""
    email: Optional[str] = None
    role: str = "devotee"
    user: dict = field(default_factory=dict)

    @classmethod
    def from_login(cls, payload: dict, *, role: str = "devotee") -> "Session":
        user = payload.get("user") or payload.get("pandit") or {}
        return cls(
            user_id=str(user.get("_id") or user.get("id") or ""),
            token=payload.get("token"),
            name=user.get("name") or "",
            email=user.get("email"),
            role=payload.get("role") or role,
            user=user,
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "token": self.token,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "user": self.user,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        return cls(
            user_id=data["user_id"],
            token=data.get("token"),
            name=data.get("name") or "",
            email=data.get("email"),
            role=data.get("role") or "devotee",
            user=data.get("user") or {},
        )
