"""User profile data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .base import SyncStatus, format_datetime, new_id, require_datetime, utc_now


class WeightUnit(str, Enum):
    """Unit used to display and enter weights."""

    LBS = "lbs"
    KG = "kg"


class DistanceUnit(str, Enum):
    MILES = "miles"
    KILOMETERS = "kilometers"
    METERS = "meters"


@dataclass
class UserProfile:
    """Public profile and display preferences.

    Owned by the profile subsystem; sync only hands it off through events.
    """

    username: str
    display_name: str = ""
    bio: str | None = None
    weight_unit: WeightUnit = WeightUnit.LBS
    distance_unit: DistanceUnit = DistanceUnit.MILES
    is_public: bool = False
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "bio": self.bio,
            "weight_unit": self.weight_unit.value,
            "distance_unit": self.distance_unit.value,
            "is_public": self.is_public,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            username=data.get("username", ""),
            display_name=data.get("display_name", ""),
            bio=data.get("bio"),
            weight_unit=WeightUnit(data.get("weight_unit", "lbs")),
            distance_unit=DistanceUnit(data.get("distance_unit", "miles")),
            is_public=data.get("is_public", False),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )
