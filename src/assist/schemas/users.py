from pydantic import BaseModel, EmailStr, Field, field_validator
from assist.models.users import UserRole
from assist.utils.constants import PHONE_REGEX
import re

PASSWORD_REGEX = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{12,}$")

SELF_SERVICE_ROLES = (UserRole.CUSTOMER, UserRole.MECHANIC)


class SignupRequest(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=30)
    phone_number: str
    password: str
    role: UserRole = UserRole.CUSTOMER

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str):
        if not PASSWORD_REGEX.fullmatch(v):
            raise ValueError(
                "Password must be at least 12 characters long and contain "
                "uppercase, lowercase, digit, and special character"
            )
        return v

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str):
        if not PHONE_REGEX.fullmatch(v.strip()):
            raise ValueError("Please enter a valid phone number")
        return v.strip()

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v):
        role = UserRole(v.upper()) if isinstance(v, str) else v
        if role not in SELF_SERVICE_ROLES:
            raise ValueError("Invalid role. Allowed roles: customer, mechanic")
        return role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
