from enum import Enum
from dataclasses import dataclass


class ServiceCategory(str, Enum):
    ROADSIDE_ASSISTANCE = "roadside-assistance"
    EV_CHARGING = "ev-charging"
    BATTERY_DELIVERY = "battery-delivery"
    ACCIDENT_PROTECTION = "accident-protection"
    TOWING = "towing"
    EMERGENCY_REPAIR = "emergency-repair"
    PREVENTIVE_MAINTENANCE = "preventive-maintenance"


@dataclass
class CatalogService:
    service_id: str
    title: str
    category: ServiceCategory
    price: float
    duration_minutes: int
    is_active: bool = True
