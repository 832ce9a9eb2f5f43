"""Topology service boundary.

Orchestrates inventory fetch, synthesis and cache write for the single
materialized topology, and answers cached reads. The inventory source and
the distributed cache are external collaborators described here by
protocols; ``JsonFileInventory`` and ``InMemoryTopologyCache`` are the
in-process stand-ins used by the CLI and tests.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from geotopo.config import GeoTopoConfig, ServiceConfig
from geotopo.errors import InventoryFetchError
from geotopo.gazetteer import shared_gazetteer
from geotopo.log_config import get_logger
from geotopo.models import Device, Topology
from geotopo.resolver import LocationResolver
from geotopo.synthesizer import TopologySynthesizer, validate_topology

logger = get_logger(__name__)


class InventorySource(Protocol):
    """Supplies device inventory records for a service endpoint."""

    def fetch(
        self, service_name: str, service_area: int, query: str, timeout_s: float
    ) -> Iterable[Device | Mapping[str, Any]]: ...


class TopologyCache(Protocol):
    """Stores the materialized topology under its well-known key."""

    def get(self, topology_id: str) -> Topology | None: ...

    def put(self, topology: Topology) -> None: ...


class InMemoryTopologyCache:
    """Thread-safe dictionary-backed topology cache."""

    def __init__(self) -> None:
        self._items: dict[str, Topology] = {}
        self._lock = threading.Lock()

    def get(self, topology_id: str) -> Topology | None:
        with self._lock:
            return self._items.get(topology_id)

    def put(self, topology: Topology) -> None:
        with self._lock:
            self._items[topology.topology_id] = topology


class JsonFileInventory:
    """Inventory source backed by a JSON file of device records.

    The file holds either a list of device mappings or an object with a
    ``"devices"`` (or ``"list"``) key. Service name, area and query are
    accepted for interface compatibility and ignored.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def fetch(
        self, service_name: str, service_area: int, query: str, timeout_s: float
    ) -> list[Mapping[str, Any]]:
        try:
            with self.path.open("r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise InventoryFetchError(f"Cannot read inventory {self.path}: {e}") from e

        if isinstance(data, Mapping):
            data = data.get("devices", data.get("list", []))
        if not isinstance(data, list):
            raise InventoryFetchError(
                f"Inventory {self.path} must contain a list of devices"
            )
        return data


def to_devices(records: Iterable[Device | Mapping[str, Any]]) -> list[Device]:
    """Convert raw inventory records to ``Device`` objects.

    Records that cannot be converted (no id, wrong shape) are skipped with a
    warning.
    """
    devices: list[Device] = []
    for record in records:
        if isinstance(record, Device):
            devices.append(record)
            continue
        if not isinstance(record, Mapping) or "id" not in record:
            logger.warning(f"Skipping malformed inventory record: {record!r:.80}")
            continue
        try:
            devices.append(Device.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping inventory record {record.get('id')!r}: {e}")
    return devices


class TopologyService:
    """Serves the single cached topology and regenerates it on demand."""

    def __init__(
        self,
        inventory: InventorySource,
        cache: TopologyCache,
        synthesizer: TopologySynthesizer,
        config: ServiceConfig | None = None,
    ) -> None:
        self.inventory = inventory
        self.cache = cache
        self.synthesizer = synthesizer
        self.config = config or ServiceConfig()
        self._regenerate_lock = threading.Lock()

    @classmethod
    def activate(
        cls,
        config: GeoTopoConfig,
        inventory: InventorySource,
        cache: TopologyCache | None = None,
    ) -> TopologyService:
        """Create a service, loading the shared gazetteer once per process."""
        gazetteer = shared_gazetteer(config.data_sources.gazetteer)
        synthesizer = TopologySynthesizer(LocationResolver(gazetteer), config.synthesis)
        service = cls(
            inventory, cache or InMemoryTopologyCache(), synthesizer, config.service
        )
        logger.info(
            f"Activated topology service {config.service.service_name} "
            f"area {config.service.service_area}"
        )
        return service

    def get(self) -> Topology | None:
        """Return the cached topology without recomputation."""
        topology = self.cache.get(self.config.topology_id)
        if topology is None:
            logger.error("No topology has been generated yet")
        return topology

    def regenerate(self, force: bool = True) -> Topology | None:
        """Fetch inventory, synthesize, and replace the cached topology.

        Args:
            force: When False and a topology is already cached, return it
                instead of regenerating.

        Returns:
            The cached topology after the call, or None when the inventory
            produced nothing to render.

        Raises:
            InventoryFetchError: If the inventory source fails.
        """
        with self._regenerate_lock:
            if not force:
                existing = self.cache.get(self.config.topology_id)
                if existing is not None:
                    return existing

            logger.info("Requesting device data")
            try:
                records = self.inventory.fetch(
                    self.config.inventory_service,
                    self.config.inventory_area,
                    self.config.inventory_query,
                    self.config.fetch_timeout_s,
                )
                devices = to_devices(records)
            except InventoryFetchError:
                raise
            except Exception as e:
                raise InventoryFetchError(f"Inventory fetch failed: {e}") from e

            logger.info(f"Generating network topology from {len(devices)} devices")
            topology = self.synthesizer.generate(devices)
            if topology is None:
                return None

            topology.topology_id = self.config.topology_id
            validate_topology(topology)
            try:
                self.cache.put(topology)
            except Exception as e:
                logger.error(f"Cache error: {e}")
            return topology
