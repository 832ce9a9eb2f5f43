"""Configuration management for geographic topology synthesis."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from geotopo.log_config import get_logger
from geotopo.models import TOPOLOGY_ID

logger = get_logger(__name__)


def _build(section_cls: type, name: str, values: dict[str, Any]) -> Any:
    """Instantiate a config section, reporting unknown keys as ValueError."""
    try:
        return section_cls(**values)
    except TypeError as e:
        raise ValueError(f"Invalid '{name}' configuration section: {e}") from e


@dataclass
class DataSources:
    """Reference data files used during synthesis and rendering.

    The gazetteer is a worldcities-style CSV table. The map descriptor is an
    optional SVG whose width/height/viewBox calibrate the projection.
    """

    gazetteer: Path = Path("worldcities.csv")
    map_descriptor: Path | None = None

    def __post_init__(self) -> None:
        """Convert string paths to Path objects."""
        self.gazetteer = Path(self.gazetteer)
        if self.map_descriptor is not None:
            self.map_descriptor = Path(self.map_descriptor)


@dataclass
class ProjectionConfig:
    """Map projection parameters.

    Reference map dimensions come from the map descriptor (or its defaults);
    these values describe the consumer viewport and the latitude clamp.
    """

    viewport_width: float = 1000.0
    viewport_height: float = 500.0
    max_latitude: float = 85.0
    override_precision: int = 4


@dataclass
class SynthesisConfig:
    """Parameters for edge and link generation.

    ``seed`` of ``None`` seeds the random source from system entropy, so
    production runs vary while tests can pin a value.
    """

    seed: int | None = None
    density_divisor: int = 3  # extra random edges attempted: n // density_divisor
    weight_range: tuple[float, float] = (1.0, 101.0)
    cost_range: tuple[int, int] = (1, 100)
    links_per_device: tuple[int, int] = (1, 3)
    bandwidths: list[str] = field(
        default_factory=lambda: ["1Gbps", "10Gbps", "25Gbps", "40Gbps", "100Gbps"]
    )
    zoom_level: int = 8
    healthy_threshold: float = 90.0
    warning_threshold: float = 70.0


@dataclass
class ServiceConfig:
    """Topology service boundary settings."""

    service_name: str = "Topol"
    service_area: int = 0
    inventory_service: str = "NetDev"
    inventory_area: int = 0
    inventory_query: str = "select * from NetworkDevice where Id=* limit 3000"
    fetch_timeout_s: float = 30.0
    topology_id: str = TOPOLOGY_ID


@dataclass
class OutputConfig:
    json_indent: int = 2
    dpi: int = 150


@dataclass
class GeoTopoConfig:
    """Top-level configuration.

    Every section is optional; omitted sections take their defaults.
    """

    data_sources: DataSources = field(default_factory=DataSources)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_yaml(cls, config_path: Path) -> GeoTopoConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Parsed configuration object.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            yaml.YAMLError: If YAML is invalid.
            ValueError: If a section has the wrong shape or an invalid value.
        """
        logger.info(f"Loading configuration from: {config_path}")

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open("r") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in configuration: {e}")
            raise

        if raw_config is None:
            raw_config = {}
        if not isinstance(raw_config, dict):
            raise ValueError("Configuration root must be a mapping")

        config = cls._from_dict(raw_config)
        base_dir = config_path.parent
        config._resolve_relative_paths(base_dir)
        return config

    @classmethod
    def _from_dict(cls, config_dict: dict[str, Any]) -> GeoTopoConfig:
        """Create configuration from dictionary.

        Args:
            config_dict: Raw configuration mapping.

        Returns:
            Parsed configuration object.

        Raises:
            ValueError: If a section is malformed.
        """

        def section(name: str) -> dict[str, Any]:
            value = config_dict.get(name, {}) or {}
            if not isinstance(value, dict):
                raise ValueError(f"'{name}' configuration section must be a dictionary")
            return value

        ds = section("data_sources")
        data_sources = DataSources(
            gazetteer=ds.get("gazetteer", "worldcities.csv"),
            map_descriptor=ds.get("map_descriptor"),
        )

        projection = _build(ProjectionConfig, "projection", section("projection"))

        synth_dict = dict(section("synthesis"))
        for key in ("weight_range", "cost_range", "links_per_device"):
            if key in synth_dict:
                value = synth_dict[key]
                if not isinstance(value, (list, tuple)) or len(value) != 2:
                    raise ValueError(f"'synthesis.{key}' must be a two-element list")
                synth_dict[key] = tuple(value)
        if "bandwidths" in synth_dict and not isinstance(
            synth_dict["bandwidths"], list
        ):
            raise ValueError("'synthesis.bandwidths' must be a list of strings")
        synthesis = _build(SynthesisConfig, "synthesis", synth_dict)

        service = _build(ServiceConfig, "service", section("service"))
        output = _build(OutputConfig, "output", section("output"))

        cfg = cls(
            data_sources=data_sources,
            projection=projection,
            synthesis=synthesis,
            service=service,
            output=output,
        )
        cfg.validate()
        return cfg

    def _resolve_relative_paths(self, base_dir: Path) -> None:
        """Resolve data source paths relative to the configuration file."""
        if not self.data_sources.gazetteer.is_absolute():
            self.data_sources.gazetteer = base_dir / self.data_sources.gazetteer
        descriptor = self.data_sources.map_descriptor
        if descriptor is not None and not descriptor.is_absolute():
            self.data_sources.map_descriptor = base_dir / descriptor

    def validate(self) -> None:
        """Validate configuration parameters.

        Missing data files are not an error here: synthesis degrades to an
        empty gazetteer and the default map dimensions.

        Raises:
            ValueError: If configuration is invalid.
        """
        logger.debug("Validating configuration")

        p = self.projection
        if p.viewport_width <= 0 or p.viewport_height <= 0:
            raise ValueError("projection viewport dimensions must be positive")
        if not 0 < p.max_latitude < 90:
            raise ValueError("projection.max_latitude must be in (0, 90)")
        if p.override_precision < 0:
            raise ValueError("projection.override_precision must be non-negative")

        s = self.synthesis
        if s.density_divisor <= 0:
            raise ValueError("synthesis.density_divisor must be positive")
        if s.weight_range[0] > s.weight_range[1]:
            raise ValueError("synthesis.weight_range must be ordered (low, high)")
        if s.cost_range[0] > s.cost_range[1]:
            raise ValueError("synthesis.cost_range must be ordered (low, high)")
        low, high = s.links_per_device
        if low < 1 or low > high:
            raise ValueError("synthesis.links_per_device must satisfy 1 <= low <= high")
        if not s.bandwidths:
            raise ValueError("synthesis.bandwidths must not be empty")
        if not s.warning_threshold <= s.healthy_threshold:
            raise ValueError(
                "synthesis.warning_threshold must not exceed healthy_threshold"
            )

        if self.service.fetch_timeout_s <= 0:
            raise ValueError("service.fetch_timeout_s must be positive")
        if not self.service.topology_id:
            raise ValueError("service.topology_id must not be empty")

        if self.output.json_indent < 0:
            raise ValueError("output.json_indent must be non-negative")
        if self.output.dpi <= 0:
            raise ValueError("output.dpi must be a positive integer")

    def summary(self) -> str:
        """Generate configuration summary string.

        Returns:
            Human-readable configuration summary.
        """
        gazetteer = self.data_sources.gazetteer
        descriptor = self.data_sources.map_descriptor
        lines = [
            "GEOTOPO CONFIGURATION",
            "=" * 60,
            "",
            "DATA SOURCES",
            "-" * 30,
            f"   Gazetteer: {gazetteer} ({'found' if gazetteer.exists() else 'missing'})",
            f"   Map descriptor: {descriptor if descriptor else 'default 2000x857'}",
            "",
            "PROJECTION",
            "-" * 30,
            f"   Viewport: {self.projection.viewport_width:g}x{self.projection.viewport_height:g}",
            f"   Max Latitude: ±{self.projection.max_latitude:g}°",
            "",
            "SYNTHESIS",
            "-" * 30,
            f"   Seed: {self.synthesis.seed if self.synthesis.seed is not None else 'random'}",
            f"   Extra Edges: n // {self.synthesis.density_divisor}",
            f"   Links per Device: {self.synthesis.links_per_device[0]}-{self.synthesis.links_per_device[1]}",
            f"   Health Thresholds: healthy >= {self.synthesis.healthy_threshold:g}, "
            f"warning >= {self.synthesis.warning_threshold:g}",
            "",
            "SERVICE",
            "-" * 30,
            f"   Service: {self.service.service_name} (area {self.service.service_area})",
            f"   Topology Key: {self.service.topology_id}",
            "",
            "=" * 60,
        ]

        return "\n".join(lines)
