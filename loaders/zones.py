"""
Zone Catalog - Static city zones and the canonical record adapter.

Raw zone payloads arrive with inconsistent field names depending on the
source (map layer, database rows, chat context). to_zone_record maps any
of them onto core.models.ZoneRecord so analytics code sees one shape.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from core.models import ZoneRecord

log = logging.getLogger(__name__)

# canonical field -> accepted source keys, in lookup order
FIELD_ALIASES = {
    "id": ("id", "zone_id"),
    "name": ("name", "zone_name"),
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lng", "lon"),
    "temperature": ("temperature", "temp"),
    "aqi": ("aqi",),
    "energy_consumption": ("energy_consumption", "energy"),
    "carbon_emission": ("carbon_emission", "carbon"),
    "area": ("area", "zone_region"),
    "humidity": ("humidity",),
    "wind_speed": ("wind_speed",),
    "sustainability_score": ("sustainability_score",),
}

REQUIRED_FIELDS = ["id", "name", "latitude", "longitude"]
NUMERIC_DEFAULTS = {
    "temperature": 0.0,
    "aqi": 0.0,
    "energy_consumption": 0.0,
    "carbon_emission": 0.0,
}


def _lookup(raw: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def to_zone_record(raw: Mapping[str, Any]) -> ZoneRecord:
    """
    Normalize a raw zone payload.

    Raises:
        ValueError: if an identifying field (id, name, coordinates) is missing
    """
    missing = [f for f in REQUIRED_FIELDS if _lookup(raw, f) is None]
    if missing:
        raise ValueError(f"Zone payload missing fields: {', '.join(missing)}")

    values = {}
    for field, default in NUMERIC_DEFAULTS.items():
        value = _lookup(raw, field)
        values[field] = float(value) if value is not None else default

    return ZoneRecord(
        id=str(_lookup(raw, "id")),
        name=str(_lookup(raw, "name")),
        latitude=float(_lookup(raw, "latitude")),
        longitude=float(_lookup(raw, "longitude")),
        area=str(_lookup(raw, "area") or ""),
        humidity=_optional_float(_lookup(raw, "humidity")),
        wind_speed=_optional_float(_lookup(raw, "wind_speed")),
        sustainability_score=_optional_float(_lookup(raw, "sustainability_score")),
        **values,
    )


# ═══════════════════════════════════════════════════════════════════════════
# CHENNAI ZONES
# ═══════════════════════════════════════════════════════════════════════════
CHENNAI_ZONES: List[Dict[str, Any]] = [
    {"id": "zone-1", "name": "T. Nagar", "lat": 13.0418, "lng": 80.2341,
     "temperature": 32, "aqi": 145, "energy": 850, "carbon": 697, "area": "Commercial Hub"},
    {"id": "zone-2", "name": "Anna Nagar", "lat": 13.0850, "lng": 80.2101,
     "temperature": 31, "aqi": 98, "energy": 620, "carbon": 508.4, "area": "Residential"},
    {"id": "zone-3", "name": "Velachery", "lat": 12.9750, "lng": 80.2200,
     "temperature": 33, "aqi": 132, "energy": 720, "carbon": 590.4, "area": "Mixed Development"},
    {"id": "zone-4", "name": "OMR (Thoraipakkam)", "lat": 12.9407, "lng": 80.2329,
     "temperature": 35, "aqi": 168, "energy": 1250, "carbon": 1025, "area": "IT Corridor"},
    {"id": "zone-5", "name": "Adyar", "lat": 13.0067, "lng": 80.2570,
     "temperature": 30, "aqi": 85, "energy": 450, "carbon": 369, "area": "Coastal Residential"},
    {"id": "zone-6", "name": "Tambaram", "lat": 12.9249, "lng": 80.1000,
     "temperature": 34, "aqi": 178, "energy": 890, "carbon": 729.8, "area": "Industrial"},
    {"id": "zone-7", "name": "Mylapore", "lat": 13.0339, "lng": 80.2619,
     "temperature": 29, "aqi": 72, "energy": 380, "carbon": 311.6, "area": "Heritage & Coastal"},
    {"id": "zone-8", "name": "Guindy", "lat": 13.0067, "lng": 80.2206,
     "temperature": 32, "aqi": 125, "energy": 680, "carbon": 557.6, "area": "Industrial Park"},
    {"id": "zone-9", "name": "Porur", "lat": 13.0358, "lng": 80.1559,
     "temperature": 33, "aqi": 155, "energy": 750, "carbon": 615, "area": "Suburban Residential"},
    {"id": "zone-10", "name": "Nungambakkam", "lat": 13.0569, "lng": 80.2424,
     "temperature": 31, "aqi": 110, "energy": 560, "carbon": 459.2, "area": "Urban Core"},
    {"id": "zone-11", "name": "ECR (Palavakkam)", "lat": 12.9698, "lng": 80.2549,
     "temperature": 28, "aqi": 65, "energy": 320, "carbon": 262.4, "area": "Coastal Tourist"},
    {"id": "zone-12", "name": "Ambattur", "lat": 13.1143, "lng": 80.1548,
     "temperature": 34, "aqi": 185, "energy": 920, "carbon": 754.4, "area": "Industrial Estate"},
]


class ZoneCatalog:
    """In-memory catalog of normalized zone records."""

    def __init__(self, raw_zones: Optional[Iterable[Mapping[str, Any]]] = None):
        source = CHENNAI_ZONES if raw_zones is None else raw_zones
        self._zones: Dict[str, ZoneRecord] = {}
        for raw in source:
            record = to_zone_record(raw)
            self._zones[record.id] = record
        log.debug(f"Loaded {len(self._zones)} zones")

    def __len__(self) -> int:
        return len(self._zones)

    def all(self) -> List[ZoneRecord]:
        return list(self._zones.values())

    def get(self, zone_id: str) -> ZoneRecord:
        """
        Raises:
            ValueError: if zone_id is unknown
        """
        if zone_id not in self._zones:
            raise ValueError(f"Zone not found: {zone_id}")
        return self._zones[zone_id]

    def find_by_name(self, name: str) -> Optional[ZoneRecord]:
        """Case-insensitive name lookup."""
        needle = name.strip().lower()
        for zone in self._zones.values():
            if zone.name.lower() == needle:
                return zone
        return None

    def recommendation_label(self, zone: ZoneRecord) -> str:
        """Name plus area label, used to infer the zone type."""
        return f"{zone.name} {zone.area}".strip()


def get_zone_catalog() -> ZoneCatalog:
    """Factory function for the default city zone catalog."""
    return ZoneCatalog()
