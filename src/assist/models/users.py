from enum import Enum
from dataclasses import dataclass
from typing import Optional


class UserRole(Enum):
    ADMIN = "ADMIN"
    MECHANIC = "MECHANIC"
    CUSTOMER = "CUSTOMER"


@dataclass
class User:
    user_id: str
    username: str
    email: str
    role: UserRole
    password: str
    phone_number: Optional[str] = None


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_mechanic(self) -> bool:
        return self.role == UserRole.MECHANIC

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.MECHANIC)
