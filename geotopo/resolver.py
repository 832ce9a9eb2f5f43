"""Best-effort resolution of free-text device locations to coordinates."""

from __future__ import annotations

import re
from typing import NamedTuple

from geotopo.gazetteer import CityRecord, Gazetteer
from geotopo.log_config import get_logger
from geotopo.models import Device

logger = get_logger(__name__)

# Words that mark a hyphen-separated segment as a site/rack identifier
# rather than a place name, e.g. "NYC-DC-01" or "Paris-Rack-7". A token may
# carry a numeric suffix, as in "DC1" or "Rack12".
TECHNICAL_TOKENS = frozenset(
    {"dc", "data", "center", "centre", "rack", "node", "server", "sw", "rt", "fw", "gw"}
)
_TECHNICAL_WORD = re.compile(rf"(?:{'|'.join(sorted(TECHNICAL_TOKENS))})\d*")

# Country spellings mapped to the forms used by the gazetteer's country
# name, ISO-2 and ISO-3 columns.
COUNTRY_ALIASES: dict[str, tuple[str, ...]] = {}


def _alias_group(names: tuple[str, ...], canonical: tuple[str, ...]) -> None:
    for name in names:
        COUNTRY_ALIASES[name] = canonical


_alias_group(
    ("usa", "united states", "united states of america", "us", "america"),
    ("united states", "us", "usa"),
)
_alias_group(
    ("uk", "united kingdom", "britain", "great britain", "england", "scotland", "wales"),
    ("united kingdom", "gb", "gbr", "uk"),
)
_alias_group(("germany", "deutschland", "de"), ("germany", "de", "deu"))
_alias_group(("netherlands", "holland", "nl"), ("netherlands", "nl", "nld"))
_alias_group(
    ("south korea", "korea", "republic of korea"), ("korea, south", "kr", "kor")
)
_alias_group(("uae", "emirates"), ("united arab emirates", "ae", "are"))
_alias_group(("russia", "russian federation"), ("russia", "ru", "rus"))


class LocationParts(NamedTuple):
    city: str
    country: str | None


class Resolution(NamedTuple):
    latitude: float
    longitude: float
    found: bool


NOT_FOUND = Resolution(0.0, 0.0, False)


def _is_technical(segment: str) -> bool:
    if segment.isdigit():
        return True
    words = re.split(r"[\s_]+", segment.lower())
    return any(_TECHNICAL_WORD.fullmatch(word) for word in words)


def parse_location(text: str) -> LocationParts:
    """Split a free-text location into city and optional country.

    Formats handled:
    - ``"Boston, MA, USA"``: first segment is the city, last the country.
    - ``"NYC-DC-01"``: technical segments are dropped; the first remaining
      segment of three or more characters is the city.
    - anything else: the whole string is the city.

    Args:
        text: Location string from the device inventory.

    Returns:
        Parsed parts; ``country`` is None when none could be identified.
    """
    location = (text or "").strip()

    if "," in location:
        parts = [part.strip() for part in location.split(",")]
        return LocationParts(parts[0], parts[-1] or None)

    if "-" in location:
        parts = [part.strip() for part in location.split("-")]
        for part in parts:
            if len(part) >= 3 and not _is_technical(part):
                return LocationParts(part, None)
        return LocationParts(parts[0], None)

    return LocationParts(location, None)


class LocationResolver:
    """Tiered location lookup against a gazetteer.

    Lookups never raise: unknown or ambiguous names resolve to
    ``Resolution(0.0, 0.0, False)``.
    """

    def __init__(self, gazetteer: Gazetteer) -> None:
        self.gazetteer = gazetteer

    def _country_keys(self, country: str) -> list[str]:
        literal = country.strip().lower()
        keys = [literal]
        for alias in COUNTRY_ALIASES.get(literal, ()):
            if alias not in keys:
                keys.append(alias)
        return keys

    def find(self, text: str) -> CityRecord | None:
        """Return the gazetteer record a location string resolves to."""
        city, country = parse_location(text)
        if not city:
            return None

        if country:
            for key in self._country_keys(country):
                record = self.gazetteer.lookup_with_country(city, key)
                if record is not None:
                    return record

        return self.gazetteer.lookup(city)

    def resolve(self, text: str) -> Resolution:
        """Resolve a location string to coordinates."""
        record = self.find(text)
        if record is None:
            return NOT_FOUND
        return Resolution(record.latitude, record.longitude, True)

    def refresh_device(self, device: Device) -> bool:
        """Overwrite a device's coordinates from its location text.

        Devices without equipment metadata or with an empty location are left
        untouched. A miss leaves the previous coordinates in place.

        Returns:
            True if the coordinates were updated.
        """
        equipment = device.equipment
        if equipment is None or not equipment.location.strip():
            return False

        lat, lng, found = self.resolve(equipment.location)
        if not found:
            logger.info(
                f"Could not find coordinates for {device.id} location: {equipment.location!r}"
            )
            return False

        equipment.latitude = lat
        equipment.longitude = lng
        logger.debug(
            f"Updated {device.id} coordinates: {lat:.4f}, {lng:.4f} "
            f"(from location: {equipment.location!r})"
        )
        return True
