"""Core data models shared by the inspection pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Latitude/longitude pair. The zero value means "not yet geocoded"."""

    latitude: float = 0.0
    longitude: float = 0.0

    @property
    def is_set(self) -> bool:
        return self.latitude != 0.0 or self.longitude != 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Coordinate":
        data = data or {}
        return cls(
            latitude=float(data.get("latitude") or 0.0),
            longitude=float(data.get("longitude") or 0.0),
        )


@dataclass(frozen=True, slots=True)
class Inspection:
    """One completed inspection event as listed on a detail page."""

    date: str
    identifier: str = ""
    reason: str = ""
    noncritical_count: int = 0
    critical_count: int = 0

    @property
    def infractions(self) -> int:
        return self.critical_count + self.noncritical_count

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Inspection":
        return cls(
            date=data.get("date", ""),
            identifier=data.get("identifier", ""),
            reason=data.get("reason", ""),
            noncritical_count=int(data.get("noncritical_count") or 0),
            critical_count=int(data.get("critical_count") or 0),
        )


@dataclass(slots=True)
class Restaurant:
    """A food premise and its accumulated inspection history.

    ``inspections`` stays empty until the detail page has been fetched.
    ``infractions_past_year`` and ``infractions_total`` are recomputed from
    ``inspections`` on every run.
    """

    id: str
    name: str
    facility_type: str = ""
    community: str = ""
    address: str = ""
    phone: str = ""
    detail_url: str = ""
    outstanding_noncritical: int = 0
    outstanding_critical: int = 0
    inspections: List[Inspection] = field(default_factory=list)
    location: Coordinate = field(default_factory=Coordinate)
    infractions_past_year: int = 0
    infractions_total: int = 0

    @property
    def has_details(self) -> bool:
        return bool(self.inspections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "facility_type": self.facility_type,
            "community": self.community,
            "address": self.address,
            "phone": self.phone,
            "detail_url": self.detail_url,
            "outstanding_noncritical": self.outstanding_noncritical,
            "outstanding_critical": self.outstanding_critical,
            "inspections": [inspection.to_dict() for inspection in self.inspections],
            "location": self.location.to_dict(),
            "infractions_past_year": self.infractions_past_year,
            "infractions_total": self.infractions_total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Restaurant":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            facility_type=data.get("facility_type", ""),
            community=data.get("community", ""),
            address=data.get("address", ""),
            phone=data.get("phone", ""),
            detail_url=data.get("detail_url", ""),
            outstanding_noncritical=int(data.get("outstanding_noncritical") or 0),
            outstanding_critical=int(data.get("outstanding_critical") or 0),
            inspections=[Inspection.from_dict(item) for item in data.get("inspections") or []],
            location=Coordinate.from_dict(data.get("location")),
            infractions_past_year=int(data.get("infractions_past_year") or 0),
            infractions_total=int(data.get("infractions_total") or 0),
        )


@dataclass(slots=True)
class Store:
    """Durable snapshot: every restaurant plus the address -> coordinate memo."""

    restaurants: List[Restaurant] = field(default_factory=list)
    geocode_cache: Dict[str, Coordinate] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "restaurants": [restaurant.to_dict() for restaurant in self.restaurants],
            "geocode_cache": {address: coord.to_dict() for address, coord in self.geocode_cache.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Store":
        return cls(
            restaurants=[Restaurant.from_dict(item) for item in data.get("restaurants") or []],
            geocode_cache={
                address: Coordinate.from_dict(coord)
                for address, coord in (data.get("geocode_cache") or {}).items()
            },
        )
