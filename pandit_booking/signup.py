"""Multi-step pandit registration form."""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass

import requests

from .api import APIClient, APIError

PHONE_RE = re.compile(r"^[6-9]\d{9}$")
EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
PASSWORD_LENGTH = 8
LAST_STEP = 4


@dataclass
class SignupFields:
    name: str = ""
    phone: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    city: str = ""
    experience_years: str = ""
    languages: str = ""
    specialties: str = ""
    bio: str = ""
    profile_photo_url: str = ""


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class PanditSignupForm:
    """Four steps: contact, password, profile, photo."""

    def __init__(self) -> None:
        self.step = 1
        self.fields = SignupFields()
        self.error = ""

    def set(self, name: str, value: str) -> None:
        if name not in asdict(self.fields):
            raise ValueError(f"Unknown signup field {name!r}")
        setattr(self.fields, name, value)
        self.error = ""

    def validate_step(self) -> str:
        f = self.fields
        if self.step == 1:
            if not f.name.strip():
                return "Name is required."
            if not PHONE_RE.match(f.phone):
                return "Enter valid 10-digit phone."
            if not EMAIL_RE.match(f.email):
                return "Enter valid email."
        if self.step == 2:
            if len(f.password) != PASSWORD_LENGTH:
                return "Password must be exactly 8 characters."
            if not f.confirm_password:
                return "Please confirm your password."
            if f.password != f.confirm_password:
                return "Password and confirm password must match."
        if self.step == 3:
            if not f.city.strip():
                return "City is required."
            if not f.experience_years:
                return "Experience is required."
        return ""

    def next_step(self) -> bool:
        message = self.validate_step()
        if message:
            self.error = message
            return False
        self.error = ""
        self.step = min(LAST_STEP, self.step + 1)
        return True

    def prev_step(self) -> None:
        self.step = max(1, self.step - 1)

    def payload(self) -> dict:
        f = self.fields
        return {
            "name": f.name,
            "phone": f.phone,
            "email": f.email,
            "password": f.password,
            "city": f.city,
            "experienceYears": f.experience_years,
            "languages": _split(f.languages),
            "specialties": _split(f.specialties),
            "bio": f.bio,
            "profile_photo_url": f.profile_photo_url,
        }

    def submit(self, client: APIClient) -> bool:
        self.error = ""
        try:
            client.signup_pandit(self.payload())
        except (APIError, requests.RequestException) as exc:
            logging.error("Pandit signup failed: %s", exc)
            self.error = getattr(exc, "message", None) or "Something went wrong"
            return False
        logging.info("Pandit %s registered, awaiting verification", self.fields.email)
        return True
