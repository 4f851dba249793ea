from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

from ..core.enums import LocationSource, LocationStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Location:
    """Thực thể miền (domain): Toạ độ báo cáo từ thiết bị.

    Coordinates are kept as received; range checks belong to the validator so
    that a malformed fix can still be classified as ``invalid``.
    """

    latitude: Any
    longitude: Any
    accuracy: Optional[float] = None
    source: Optional[LocationSource] = None
    address: Optional[str] = None
    timestamp: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Location":
        if not isinstance(data, Mapping):
            raise ValidationError("Location must be an object")
        if "latitude" not in data or "longitude" not in data:
            raise ValidationError("Location requires latitude and longitude")

        source = data.get("source")
        if source is not None:
            try:
                source = LocationSource(source)
            except ValueError as e:
                raise ValidationError(f"Unknown location source: {source!r}") from e

        accuracy = data.get("accuracy")
        if accuracy is not None:
            if isinstance(accuracy, bool):
                raise ValidationError("Location accuracy must be a number")
            try:
                accuracy = float(accuracy)
            except (TypeError, ValueError, OverflowError) as e:
                raise ValidationError("Location accuracy must be a number") from e
            # JSON bodies may carry NaN/Infinity
            if not math.isfinite(accuracy) or accuracy < 0:
                raise ValidationError("Location accuracy must be a finite, non-negative number")

        return cls(
            latitude=data["latitude"],
            longitude=data["longitude"],
            accuracy=accuracy,
            source=source,
            address=data.get("address"),
            timestamp=data.get("timestamp"),
        )

    def to_dict(self) -> dict:
        out = asdict(self)
        if self.source is not None:
            out["source"] = self.source.value
        return {k: v for k, v in out.items() if v is not None}


@dataclass(frozen=True)
class LocationCheck:
    """Kết quả kiểm tra vị trí."""

    status: LocationStatus
    message: str
    distance: Optional[float] = None


@dataclass(frozen=True)
class LocationReport:
    """Read-model for the validate-location operation."""

    is_valid: bool
    status: LocationStatus
    message: str
    distance: Optional[float]
    recommendations: list[str]

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "status": self.status.value,
            "message": self.message,
            "distance": self.distance,
            "recommendations": list(self.recommendations),
        }
