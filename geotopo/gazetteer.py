"""World city gazetteer loading and lookup indices.

Parses a worldcities-style CSV table (city, city_ascii, lat, lng, country,
iso2, iso3, admin_name, capital, population, id) into immutable
``CityRecord`` objects and three read-only indices:

- ``cities``: lowercase city name (and ASCII name) to the most prominent
  city with that name.
- ``city_country``: lowercase ``"name,country"`` keys, where country is the
  full country name, the ISO-2 code or the ISO-3 code.
- ``all_cities``: every loaded record in file order.

Indices are built once and exposed through ``MappingProxyType``; a loaded
gazetteer can be shared by concurrent readers without locking.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

import pandas as pd

from geotopo.errors import ResourceLoadError
from geotopo.log_config import get_logger

logger = get_logger(__name__)

COLUMNS = [
    "city",
    "city_ascii",
    "lat",
    "lng",
    "country",
    "iso2",
    "iso3",
    "admin_name",
    "capital",
    "population",
    "id",
]


@dataclass(frozen=True)
class CityRecord:
    """One gazetteer row."""

    city: str
    city_ascii: str
    latitude: float
    longitude: float
    country: str
    iso2: str
    iso3: str
    admin_name: str
    capital: str
    population: float | None
    city_id: str

    @property
    def is_national_capital(self) -> bool:
        return self.capital.lower() == "primary"

    @property
    def is_admin_capital(self) -> bool:
        return self.capital.lower() == "admin"

    @property
    def coordinates(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


def outranks(candidate: CityRecord, existing: CityRecord) -> bool:
    """Return True if ``candidate`` should replace ``existing`` under a shared key.

    Precedence: national capital, then larger population (a known population
    beats an unknown one), then admin capital. Ties keep the first-seen city.
    """
    if candidate.is_national_capital != existing.is_national_capital:
        return candidate.is_national_capital

    if candidate.population != existing.population:
        if existing.population is None:
            return True
        if candidate.population is None:
            return False
        return candidate.population > existing.population

    if candidate.is_admin_capital != existing.is_admin_capital:
        return candidate.is_admin_capital

    return False


def _put_ranked(index: dict[str, CityRecord], key: str, city: CityRecord) -> None:
    existing = index.get(key)
    if existing is None or outranks(city, existing):
        index[key] = city


class Gazetteer:
    """Read-only city lookup indices."""

    def __init__(self, records: Iterable[CityRecord] = ()) -> None:
        cities: dict[str, CityRecord] = {}
        city_country: dict[str, CityRecord] = {}
        all_cities: list[CityRecord] = []

        for city in records:
            all_cities.append(city)

            names = {city.city.lower(), city.city_ascii.lower()} - {""}
            countries = {city.country.lower(), city.iso2.lower(), city.iso3.lower()} - {
                ""
            }
            for name in names:
                _put_ranked(cities, name, city)
                for country in countries:
                    _put_ranked(city_country, f"{name},{country}", city)

        self._cities: Mapping[str, CityRecord] = MappingProxyType(cities)
        self._city_country: Mapping[str, CityRecord] = MappingProxyType(city_country)
        self._all_cities: tuple[CityRecord, ...] = tuple(all_cities)

    @classmethod
    def empty(cls) -> Gazetteer:
        return cls(())

    @property
    def cities(self) -> Mapping[str, CityRecord]:
        return self._cities

    @property
    def city_country(self) -> Mapping[str, CityRecord]:
        return self._city_country

    @property
    def all_cities(self) -> tuple[CityRecord, ...]:
        return self._all_cities

    @property
    def total_cities(self) -> int:
        return len(self._all_cities)

    @property
    def is_empty(self) -> bool:
        return not self._all_cities

    def __len__(self) -> int:
        return len(self._all_cities)

    def lookup(self, city_name: str) -> CityRecord | None:
        """Simple name lookup, preferring the most prominent city."""
        return self._cities.get(city_name.strip().lower())

    def lookup_with_country(self, city_name: str, country: str) -> CityRecord | None:
        """Composite lookup by city and country name or ISO code."""
        key = f"{city_name.strip().lower()},{country.strip().lower()}"
        return self._city_country.get(key)

    def city_info(self, city_name: str) -> CityRecord | None:
        """Return the full record for a city name, if known."""
        return self.lookup(city_name)

    def cities_in_country(self, country: str) -> list[CityRecord]:
        """Return every loaded city whose country, ISO-2 or ISO-3 matches."""
        wanted = country.strip().lower()
        return [
            city
            for city in self._all_cities
            if wanted in (city.country.lower(), city.iso2.lower(), city.iso3.lower())
        ]

    def city_names(self) -> list[str]:
        """Sorted simple-index keys."""
        return sorted(self._cities)


def _population(value: float) -> float | None:
    return None if math.isnan(value) else float(value)


def load_gazetteer(path: Path) -> Gazetteer:
    """Load the city gazetteer from a CSV table.

    Rows with fewer than eleven fields or unparsable latitude/longitude are
    skipped with a warning; the rest of the table still loads.

    Args:
        path: Path to the worldcities CSV file.

    Returns:
        Populated gazetteer.

    Raises:
        ResourceLoadError: If the file is missing, unreadable, or lacks the
            expected columns.
    """
    path = Path(path)
    logger.info(f"Loading gazetteer from: {path}")

    if not path.exists():
        raise ResourceLoadError(path, "file not found")

    try:
        frame = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            encoding_errors="replace",
            engine="python",
            on_bad_lines=lambda fields: fields[: len(COLUMNS)],
        )
    except pd.errors.EmptyDataError as e:
        raise ResourceLoadError(path, "empty table") from e
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise ResourceLoadError(path, str(e)) from e

    if frame.shape[1] < len(COLUMNS):
        raise ResourceLoadError(
            path, f"expected {len(COLUMNS)} columns, found {frame.shape[1]}"
        )

    frame = frame.iloc[:, : len(COLUMNS)]
    frame.columns = COLUMNS

    short = frame.isna().any(axis=1)
    latitudes = pd.to_numeric(frame["lat"], errors="coerce")
    longitudes = pd.to_numeric(frame["lng"], errors="coerce")
    populations = pd.to_numeric(frame["population"], errors="coerce")

    records: list[CityRecord] = []
    skipped = 0
    for pos, row in enumerate(frame.itertuples(index=False)):
        line_no = pos + 2  # header is line 1
        if short.iloc[pos]:
            logger.warning(f"Skipping incomplete gazetteer row {line_no}")
            skipped += 1
            continue

        lat = latitudes.iloc[pos]
        lng = longitudes.iloc[pos]
        if math.isnan(lat):
            logger.warning(
                f"Invalid latitude for city {row.city!r} at row {line_no}: {row.lat!r}"
            )
            skipped += 1
            continue
        if math.isnan(lng):
            logger.warning(
                f"Invalid longitude for city {row.city!r} at row {line_no}: {row.lng!r}"
            )
            skipped += 1
            continue

        records.append(
            CityRecord(
                city=row.city.strip(),
                city_ascii=row.city_ascii.strip(),
                latitude=float(lat),
                longitude=float(lng),
                country=row.country.strip(),
                iso2=row.iso2.strip(),
                iso3=row.iso3.strip(),
                admin_name=row.admin_name.strip(),
                capital=row.capital.strip(),
                population=_population(populations.iloc[pos]),
                city_id=row.id.strip(),
            )
        )

    gazetteer = Gazetteer(records)
    logger.info(
        f"Loaded {gazetteer.total_cities:,} cities "
        f"({len(gazetteer.cities):,} names, {skipped} rows skipped)"
    )
    return gazetteer


@lru_cache(maxsize=8)
def _shared_gazetteer(resolved_path: str) -> Gazetteer:
    try:
        return load_gazetteer(Path(resolved_path))
    except ResourceLoadError as e:
        logger.warning(f"Could not load gazetteer: {e}. Location resolution disabled.")
        return Gazetteer.empty()


def shared_gazetteer(path: Path) -> Gazetteer:
    """Load a gazetteer once per process and path.

    A missing or corrupt file yields an empty gazetteer instead of an error,
    so topology generation continues with unresolved coordinates.
    """
    return _shared_gazetteer(str(Path(path).resolve()))
