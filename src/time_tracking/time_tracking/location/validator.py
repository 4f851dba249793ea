from __future__ import annotations

import math
from numbers import Real
from typing import Optional

from ..core.constants import DEFAULT_LOW_ACCURACY_THRESHOLD_METERS, EARTH_RADIUS_METERS
from ..core.enums import LocationStatus
from .model import Location, LocationCheck, LocationReport

_RECOMMENDATIONS: dict[LocationStatus, list[str]] = {
    LocationStatus.INVALID: [
        "Check if GPS is enabled on your device",
        "Try moving to an area with better GPS signal",
        "Restart your device GPS if the problem persists",
    ],
    LocationStatus.LOW_ACCURACY: [
        "Move to an open area for better GPS signal",
        "Wait a few moments for GPS to improve accuracy",
        "Check-in is allowed but may require HR review",
    ],
    LocationStatus.REMOTE: [
        "You appear to be working remotely",
        "Contact HR if you should be checking in from office",
        "Remote check-ins may require approval",
    ],
    LocationStatus.NEAR_OFFICE: [
        "You are near the office location",
        "Check-in is allowed",
    ],
    LocationStatus.VALID: [
        "Location verified - you are at the office",
    ],
    LocationStatus.NO_OFFICE_CONFIG: [],
    LocationStatus.UNAVAILABLE: [
        "Enable location services or use the fallback check-in",
    ],
}


def _is_number(value) -> bool:
    # bool is a Real subclass but never a coordinate.
    if not isinstance(value, Real) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def is_valid_coordinates(location: Location) -> bool:
    return (
        _is_number(location.latitude)
        and _is_number(location.longitude)
        and -90 <= location.latitude <= 90
        and -180 <= location.longitude <= 180
    )


def haversine_distance(a: Location, b: Location) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


def _rounded(distance: float) -> int:
    return int(math.floor(distance + 0.5))


class LocationValidator:
    """Classifies a reported coordinate against the office geofence.

    The office location is fixed at construction; ``None`` means no office is
    configured and every well-formed fix is accepted.
    """

    def __init__(
        self,
        office: Optional[Location],
        max_radius_meters: float,
        *,
        low_accuracy_threshold_meters: float = DEFAULT_LOW_ACCURACY_THRESHOLD_METERS,
    ):
        self._office = office
        self._max_radius = float(max_radius_meters)
        self._low_accuracy = float(low_accuracy_threshold_meters)

    def classify(self, reported: Optional[Location]) -> LocationCheck:
        return classify(
            reported,
            self._office,
            self._max_radius,
            low_accuracy_threshold_meters=self._low_accuracy,
        )

    def report(self, reported: Optional[Location]) -> LocationReport:
        check = self.classify(reported)
        distance = check.distance
        if distance is None and self._office is not None and reported is not None and is_valid_coordinates(reported):
            distance = haversine_distance(reported, self._office)

        return LocationReport(
            is_valid=is_within_office(check.status),
            status=check.status,
            message=check.message,
            distance=distance,
            recommendations=recommendations(check.status),
        )


def classify(
    reported: Optional[Location],
    office: Optional[Location],
    max_radius_meters: float,
    *,
    low_accuracy_threshold_meters: float = DEFAULT_LOW_ACCURACY_THRESHOLD_METERS,
) -> LocationCheck:
    if reported is None:
        return LocationCheck(LocationStatus.UNAVAILABLE, "Location not provided")

    if not is_valid_coordinates(reported):
        return LocationCheck(LocationStatus.INVALID, "Invalid GPS coordinates received")

    if reported.accuracy is not None and reported.accuracy > low_accuracy_threshold_meters:
        return LocationCheck(
            LocationStatus.LOW_ACCURACY,
            f"GPS accuracy is low ({reported.accuracy:g}m). Location may not be precise.",
        )

    if office is None:
        return LocationCheck(
            LocationStatus.NO_OFFICE_CONFIG,
            "Office location not configured. Check-in allowed from any location.",
        )

    distance = haversine_distance(reported, office)
    status = classify_distance(distance, max_radius_meters)
    message = {
        LocationStatus.VALID: "Check-in from office location ({}m from office)",
        LocationStatus.NEAR_OFFICE: "Check-in near office location ({}m from office)",
        LocationStatus.REMOTE: "Remote check-in detected ({}m from office)",
    }[status].format(_rounded(distance))
    return LocationCheck(status, message, distance)


def classify_distance(distance: float, max_radius_meters: float) -> LocationStatus:
    if distance <= max_radius_meters:
        return LocationStatus.VALID
    if distance <= 2 * max_radius_meters:
        return LocationStatus.NEAR_OFFICE
    return LocationStatus.REMOTE


def is_within_office(status: LocationStatus) -> bool:
    return status in (LocationStatus.VALID, LocationStatus.NEAR_OFFICE)


def recommendations(status: LocationStatus) -> list[str]:
    return list(_RECOMMENDATIONS.get(status, []))
