"""Projection of geographic coordinates onto the world map surface.

The reference map is an SVG world map (2000x857 units unless a map
descriptor says otherwise). Conversion runs in four steps:

1. Hand-placed overrides for well-known points, keyed by rounded lat/lon
   and scaled from default-map units to the loaded map.
2. Otherwise linear longitude and a spherical Mercator latitude curve,
   clamped to +/- ``max_latitude`` so the poles stay finite.
3. Small regional nudges that pull coastal points off open water.
4. Linear rescale from reference-map units into the consumer viewport.

Every step is pure; ``convert`` never raises and always returns a point
inside the viewport.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Sequence

from shapely.geometry import Point, box

from geotopo.errors import ResourceLoadError
from geotopo.geo_utils import clamp, mercator_y
from geotopo.log_config import get_logger
from geotopo.models import MapCoordinate

if TYPE_CHECKING:
    from geotopo.config import ProjectionConfig

logger = get_logger(__name__)

DEFAULT_MAP_WIDTH = 2000.0
DEFAULT_MAP_HEIGHT = 857.0

# Positions on the default 2000x857 map for points where the generic curve
# lands in open water on the shipped SVG asset. Keys are (lat, lon) rounded
# to 4 places. Other map sizes scale these proportionally.
COORDINATE_OVERRIDES: Mapping[tuple[float, float], tuple[float, float]] = {
    # North America
    (40.7128, -74.0060): (608.2, 239.6),  # New York
    (34.0522, -118.2426): (372.6, 280.9),  # Los Angeles
    (41.8781, -87.6298): (535.6, 232.4),  # Chicago
    (43.6532, -79.3832): (607.0, 223.8),  # Toronto
    # Europe
    (51.5074, -0.1278): (987.4, 172.9),  # London
    (48.8566, 2.3522): (995.6, 187.7),  # Paris
    (50.1109, 8.6821): (1029.0, 181.7),  # Frankfurt
    (52.3676, 4.9041): (1009.6, 167.6),  # Amsterdam
    # Asia
    (35.6762, 139.6503): (1711.4, 267.2),  # Tokyo
    (1.3521, 103.8198): (1625.8, 496.7),  # Singapore
    (19.0760, 72.8777): (1389.4, 374.9),  # Mumbai
    (37.5665, 126.9780): (1661.2, 259.2),  # Seoul
    # Oceania
    (-33.8688, 151.2093): (1790.4, 698.6),  # Sydney
    (-37.8136, 144.9631): (1760.0, 720.4),  # Melbourne
    # South America
    (-23.5505, -46.6333): (723.0, 653.2),  # Sao Paulo
    (4.7110, -74.0721): (574.0, 480.8),  # Bogota
    # Africa
    (30.0444, 31.2357): (1159.8, 309.4),  # Cairo
    (-33.9249, 18.4241): (1087.2, 719.5),  # Cape Town
}


@dataclass(frozen=True)
class BoundaryAdjustment:
    """Nudge, in default-map units, applied to points inside a lat/lon box."""

    name: str
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float
    dx: float
    dy: float

    def covers(self, latitude: float, longitude: float) -> bool:
        region = box(self.min_lon, self.min_lat, self.max_lon, self.max_lat)
        return region.covers(Point(longitude, latitude))


# First matching region wins; narrower boxes come before wider ones. Nudges
# are in default-map units like the overrides above.
BOUNDARY_ADJUSTMENTS: tuple[BoundaryAdjustment, ...] = (
    BoundaryAdjustment("singapore_strait", -1.0, 100.0, 7.0, 105.0, 0.0, -2.0),
    BoundaryAdjustment("japan", 30.0, 129.0, 46.0, 146.0, -4.0, 0.0),
    BoundaryAdjustment("british_isles", 49.5, -11.0, 59.0, 2.0, 3.0, 0.0),
    BoundaryAdjustment("florida", 24.0, -88.0, 31.0, -79.5, -2.0, -2.0),
    BoundaryAdjustment("us_east_coast", 31.0, -82.0, 45.0, -69.0, -3.0, 0.0),
    BoundaryAdjustment("us_west_coast", 32.0, -125.0, 49.0, -116.0, 3.0, 0.0),
    BoundaryAdjustment("chile_coast", -56.0, -76.0, -17.0, -69.0, 3.0, 0.0),
    BoundaryAdjustment("east_australia", -39.0, 148.0, -24.0, 154.0, -3.0, 0.0),
    BoundaryAdjustment("new_zealand", -48.0, 165.0, -34.0, 179.0, -3.0, 0.0),
)


@dataclass(frozen=True)
class MapDescriptor:
    """Dimensions and viewBox of the reference map asset."""

    width: float = DEFAULT_MAP_WIDTH
    height: float = DEFAULT_MAP_HEIGHT
    viewbox_x: float = 0.0
    viewbox_y: float = 0.0
    viewbox_width: float = DEFAULT_MAP_WIDTH
    viewbox_height: float = DEFAULT_MAP_HEIGHT

    @classmethod
    def default(cls) -> MapDescriptor:
        return cls()


_WIDTH_RE = re.compile(r'\bwidth="([0-9.]+)"', re.IGNORECASE)
_HEIGHT_RE = re.compile(r'\bheight="([0-9.]+)"', re.IGNORECASE)
_VIEWBOX_RE = re.compile(r'\bviewbox="([0-9.,\s-]+)"', re.IGNORECASE)


def _parse_positive(match: re.Match[str] | None) -> float | None:
    if match is None:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return value if value > 0 else None


def load_map_descriptor(path: Path) -> MapDescriptor:
    """Read width, height and viewBox from an SVG map file.

    Attributes that are absent or unparsable fall back to the 2000x857
    defaults; a viewBox without usable size falls back to width/height.

    Args:
        path: Path to the SVG file.

    Returns:
        Parsed map descriptor.

    Raises:
        ResourceLoadError: If the file is missing or unreadable.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ResourceLoadError(path, str(e)) from e

    width = _parse_positive(_WIDTH_RE.search(content)) or DEFAULT_MAP_WIDTH
    height = _parse_positive(_HEIGHT_RE.search(content)) or DEFAULT_MAP_HEIGHT

    vb_x, vb_y, vb_w, vb_h = 0.0, 0.0, width, height
    match = _VIEWBOX_RE.search(content)
    if match:
        parts = match.group(1).replace(",", " ").split()
        if len(parts) == 4:
            try:
                x, y, w, h = (float(p) for p in parts)
            except ValueError:
                logger.warning(f"Ignoring unparsable viewBox in {path}: {match.group(1)!r}")
            else:
                vb_x, vb_y = x, y
                if w > 0 and h > 0:
                    vb_w, vb_h = w, h

    descriptor = MapDescriptor(width, height, vb_x, vb_y, vb_w, vb_h)
    logger.info(
        f"Loaded map descriptor {path.name}: {int(width)}x{int(height)}, "
        f"ViewBox: {vb_x:.0f} {vb_y:.0f} {vb_w:.0f} {vb_h:.0f}"
    )
    return descriptor


class MapProjector:
    """Converts latitude/longitude into viewport pixel coordinates."""

    def __init__(
        self,
        descriptor: MapDescriptor | None = None,
        viewport: tuple[float, float] = (1000.0, 500.0),
        max_latitude: float = 85.0,
        overrides: Mapping[tuple[float, float], tuple[float, float]] = COORDINATE_OVERRIDES,
        regions: Sequence[BoundaryAdjustment] = BOUNDARY_ADJUSTMENTS,
        override_precision: int = 4,
    ) -> None:
        self.descriptor = descriptor or MapDescriptor.default()
        self.viewport_width, self.viewport_height = (float(v) for v in viewport)
        self.max_latitude = float(max_latitude)
        self.overrides = overrides
        self.regions = tuple(regions)
        self.override_precision = override_precision
        # Northing of the clamp latitude; maps to the top edge of the map.
        self._y_limit = mercator_y(self.max_latitude)
        # Override positions and nudges are in default-map units.
        self._scale_x = self.reference_width / DEFAULT_MAP_WIDTH
        self._scale_y = self.reference_height / DEFAULT_MAP_HEIGHT

    @classmethod
    def from_config(
        cls, projection: ProjectionConfig, map_descriptor: Path | None = None
    ) -> MapProjector:
        """Build a projector, falling back to default map dimensions.

        Args:
            projection: Projection configuration.
            map_descriptor: Optional SVG map file to calibrate against.
        """
        descriptor = MapDescriptor.default()
        if map_descriptor is not None:
            try:
                descriptor = load_map_descriptor(map_descriptor)
            except ResourceLoadError as e:
                logger.warning(f"Could not load map descriptor: {e}. Using defaults.")
        return cls(
            descriptor,
            viewport=(projection.viewport_width, projection.viewport_height),
            max_latitude=projection.max_latitude,
            override_precision=projection.override_precision,
        )

    @property
    def reference_width(self) -> float:
        return self.descriptor.viewbox_width

    @property
    def reference_height(self) -> float:
        return self.descriptor.viewbox_height

    def override_for(self, latitude: float, longitude: float) -> tuple[float, float] | None:
        key = (
            round(latitude, self.override_precision),
            round(longitude, self.override_precision),
        )
        return self.overrides.get(key)

    def region_for(self, latitude: float, longitude: float) -> BoundaryAdjustment | None:
        for region in self.regions:
            if region.covers(latitude, longitude):
                return region
        return None

    def project(self, latitude: float, longitude: float) -> tuple[float, float]:
        """Apply the bare projection curve in reference-map units."""
        lon = clamp(longitude, -180.0, 180.0)
        lat = clamp(latitude, -self.max_latitude, self.max_latitude)

        x = (lon + 180.0) / 360.0 * self.reference_width
        normalized = 0.5 - mercator_y(lat) / (2.0 * self._y_limit)
        y = normalized * self.reference_height
        return x, y

    def reference_point(self, latitude: float, longitude: float) -> tuple[float, float]:
        """Position on the reference map after overrides and regional nudges."""
        if not math.isfinite(latitude):
            latitude = 0.0
        if not math.isfinite(longitude):
            longitude = 0.0

        override = self.override_for(latitude, longitude)
        if override is not None:
            x = override[0] * self._scale_x
            y = override[1] * self._scale_y
        else:
            x, y = self.project(latitude, longitude)
            region = self.region_for(latitude, longitude)
            if region is not None:
                x += region.dx * self._scale_x
                y += region.dy * self._scale_y

        return (
            clamp(x, 0.0, self.reference_width),
            clamp(y, 0.0, self.reference_height),
        )

    def convert(self, latitude: float, longitude: float) -> MapCoordinate:
        """Convert a geographic coordinate to viewport pixels.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.

        Returns:
            Point within [0, viewport_width] x [0, viewport_height].
        """
        ref_x, ref_y = self.reference_point(latitude, longitude)
        x = ref_x / self.reference_width * self.viewport_width
        y = ref_y / self.reference_height * self.viewport_height
        return MapCoordinate(
            clamp(round(x, 2), 0.0, self.viewport_width),
            clamp(round(y, 2), 0.0, self.viewport_height),
        )
