"""Data model for devices and synthesized topologies.

Device records arrive from the inventory as loosely-typed mappings. They are
converted once, at the boundary, by ``Device.from_dict``: after that a device
either carries a fully typed ``EquipmentInfo`` or ``equipment is None``, and
nothing downstream has to inspect raw payloads again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, NamedTuple

TOPOLOGY_ID = "topo"


class GeoCoordinate(NamedTuple):
    """Geographic coordinate in degrees."""

    latitude: float
    longitude: float

    @property
    def is_zero(self) -> bool:
        return self.latitude == 0 and self.longitude == 0


class MapCoordinate(NamedTuple):
    """Pixel coordinate on the consumer viewport."""

    x: float
    y: float


def _enum_token(value: str, prefix: str) -> str:
    token = value.strip().lower().replace("-", "_").replace(" ", "_")
    if token.startswith(prefix):
        token = token[len(prefix) :]
    return token


class DeviceType(str, Enum):
    """Declared equipment type of an inventory device."""

    ROUTER = "router"
    SWITCH = "switch"
    FIREWALL = "firewall"
    SERVER = "server"
    LOAD_BALANCER = "load_balancer"
    GATEWAY = "gateway"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> DeviceType:
        """Parse a device type from an enum, name or inventory wire code.

        Accepts ``"router"``, ``"Load-Balancer"``, ``"DEVICE_TYPE_ROUTER"`` and
        the inventory's integer codes. Anything unrecognized is ``UNKNOWN``.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return _DEVICE_TYPE_CODES.get(value, cls.UNKNOWN)
        if isinstance(value, str):
            token = _enum_token(value, "device_type_")
            if token.isdigit():
                return _DEVICE_TYPE_CODES.get(int(token), cls.UNKNOWN)
            try:
                return cls(token)
            except ValueError:
                return cls.UNKNOWN
        return cls.UNKNOWN


class DeviceStatus(str, Enum):
    """Operational status reported for an inventory device."""

    ONLINE = "online"
    OFFLINE = "offline"
    WARNING = "warning"
    CRITICAL = "critical"
    MAINTENANCE = "maintenance"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> DeviceStatus:
        """Parse a device status from an enum, name or inventory wire code."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return _DEVICE_STATUS_CODES.get(value, cls.UNKNOWN)
        if isinstance(value, str):
            token = _enum_token(value, "device_status_")
            if token.isdigit():
                return _DEVICE_STATUS_CODES.get(int(token), cls.UNKNOWN)
            try:
                return cls(token)
            except ValueError:
                return cls.UNKNOWN
        return cls.UNKNOWN


_DEVICE_TYPE_CODES = {
    1: DeviceType.ROUTER,
    2: DeviceType.SWITCH,
    3: DeviceType.FIREWALL,
    4: DeviceType.SERVER,
}

_DEVICE_STATUS_CODES = {
    1: DeviceStatus.ONLINE,
    2: DeviceStatus.OFFLINE,
    3: DeviceStatus.WARNING,
    4: DeviceStatus.CRITICAL,
    5: DeviceStatus.MAINTENANCE,
}


class NodeType(str, Enum):
    ROUTER = "router"
    SWITCH = "switch"
    FIREWALL = "firewall"
    SERVER = "server"
    LOAD_BALANCER = "load_balancer"
    GATEWAY = "gateway"
    UNKNOWN = "unknown"


class NodeStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    WARNING = "warning"
    CRITICAL = "critical"
    MAINTENANCE = "maintenance"
    UNKNOWN = "unknown"


class HealthLevel(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


def _float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Link:
    """Descriptive per-device connection carrying simulated telemetry."""

    link_id: str
    name: str
    from_node: str
    to_node: str
    bandwidth: str
    utilization_percent: float
    latency_ms: float
    distance_km: float
    uptime: str
    error_rate: float
    availability_percent: float
    status: str = "active"
    link_type: str = "ethernet"

    def to_dict(self) -> dict[str, Any]:
        return {
            "link_id": self.link_id,
            "name": self.name,
            "from_node": self.from_node,
            "to_node": self.to_node,
            "status": self.status,
            "link_type": self.link_type,
            "bandwidth": self.bandwidth,
            "utilization_percent": self.utilization_percent,
            "latency_ms": self.latency_ms,
            "distance_km": self.distance_km,
            "uptime": self.uptime,
            "error_rate": self.error_rate,
            "availability_percent": self.availability_percent,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Link:
        return cls(
            link_id=str(data["link_id"]),
            name=str(data.get("name", "")),
            from_node=str(data["from_node"]),
            to_node=str(data["to_node"]),
            bandwidth=str(data.get("bandwidth", "")),
            utilization_percent=_float(data.get("utilization_percent")),
            latency_ms=_float(data.get("latency_ms")),
            distance_km=_float(data.get("distance_km")),
            uptime=str(data.get("uptime", "")),
            error_rate=_float(data.get("error_rate")),
            availability_percent=_float(data.get("availability_percent")),
            status=str(data.get("status", "active")),
            link_type=str(data.get("link_type", "ethernet")),
        )


@dataclass
class EquipmentInfo:
    """Equipment metadata of a device.

    ``latitude`` and ``longitude`` are overwritten by the location resolver
    when the free-text ``location`` matches the gazetteer.
    """

    sys_name: str = ""
    device_type: DeviceType = DeviceType.UNKNOWN
    device_status: DeviceStatus = DeviceStatus.UNKNOWN
    location: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    vendor: str | None = None
    model: str | None = None
    ip_address: str | None = None

    @property
    def coordinates(self) -> GeoCoordinate:
        return GeoCoordinate(self.latitude, self.longitude)

    @property
    def has_coordinates(self) -> bool:
        return not self.coordinates.is_zero

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sys_name": self.sys_name,
            "device_type": self.device_type.value,
            "device_status": self.device_status.value,
            "location": self.location,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }
        for key in ("vendor", "model", "ip_address"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EquipmentInfo:
        """Build equipment metadata from an inventory mapping.

        Both snake_case keys and the inventory's camel-case spellings
        (``sysName``, ``deviceType``, ``deviceStatus``) are accepted.
        """

        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        return cls(
            sys_name=str(pick("sys_name", "sysName", "name", default="")),
            device_type=DeviceType.parse(pick("device_type", "deviceType")),
            device_status=DeviceStatus.parse(pick("device_status", "deviceStatus")),
            location=str(pick("location", default="") or ""),
            latitude=_float(pick("latitude", "lat")),
            longitude=_float(pick("longitude", "lng", "lon")),
            vendor=pick("vendor"),
            model=pick("model"),
            ip_address=pick("ip_address", "ipAddress"),
        )


@dataclass
class Device:
    """A managed device as supplied by the inventory."""

    id: str
    equipment: EquipmentInfo | None = None
    links: list[Link] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "equipment": self.equipment.to_dict() if self.equipment else None,
            "links": [link.to_dict() for link in self.links],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Device:
        """Convert an inventory record into a ``Device``.

        A missing, null or non-mapping equipment section yields a device with
        ``equipment=None``; such devices are skipped during synthesis.
        """
        raw_equipment = data.get("equipment", data.get("equipmentinfo"))
        equipment = (
            EquipmentInfo.from_dict(raw_equipment)
            if isinstance(raw_equipment, Mapping)
            else None
        )
        links = [Link.from_dict(item) for item in data.get("links", None) or []]
        return cls(id=str(data["id"]), equipment=equipment, links=links)


@dataclass
class Node:
    """Graph representation of one device within a topology."""

    node_id: str
    name: str
    node_type: NodeType
    status: NodeStatus
    location: str
    coordinates: GeoCoordinate
    routing_capable: bool = False
    switching_capable: bool = False
    firewall_capable: bool = False
    load_balancing_capable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_id": self.node_id,
            "name": self.name,
            "node_type": self.node_type.value,
            "status": self.status.value,
            "location": self.location,
            "latitude": self.coordinates.latitude,
            "longitude": self.coordinates.longitude,
            "capabilities": {
                "routing": self.routing_capable,
                "switching": self.switching_capable,
                "firewall": self.firewall_capable,
                "load_balancing": self.load_balancing_capable,
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Node:
        caps = data.get("capabilities", {}) or {}
        return cls(
            node_id=str(data["node_id"]),
            name=str(data.get("name", "")),
            node_type=NodeType(data.get("node_type", "unknown")),
            status=NodeStatus(data.get("status", "unknown")),
            location=str(data.get("location", "")),
            coordinates=GeoCoordinate(
                _float(data.get("latitude")), _float(data.get("longitude"))
            ),
            routing_capable=bool(caps.get("routing", False)),
            switching_capable=bool(caps.get("switching", False)),
            firewall_capable=bool(caps.get("firewall", False)),
            load_balancing_capable=bool(caps.get("load_balancing", False)),
        )


@dataclass
class Edge:
    """Undirected synthesized connection between two nodes."""

    edge_id: str
    source: str
    target: str
    weight: float
    cost: int
    label: str
    edge_type: str = "physical"
    status: str = "up"

    @property
    def pair(self) -> frozenset[str]:
        """Unordered endpoint pair."""
        return frozenset((self.source, self.target))

    def to_dict(self) -> dict[str, Any]:
        return {
            "edge_id": self.edge_id,
            "source": self.source,
            "target": self.target,
            "edge_type": self.edge_type,
            "status": self.status,
            "weight": self.weight,
            "cost": self.cost,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Edge:
        return cls(
            edge_id=str(data["edge_id"]),
            source=str(data["source"]),
            target=str(data["target"]),
            weight=_float(data.get("weight")),
            cost=int(data.get("cost", 0)),
            label=str(data.get("label", "")),
            edge_type=str(data.get("edge_type", "physical")),
            status=str(data.get("status", "up")),
        )


@dataclass
class Statistics:
    total_nodes: int = 0
    active_nodes: int = 0
    total_edges: int = 0
    active_edges: int = 0
    network_density: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_nodes": self.total_nodes,
            "active_nodes": self.active_nodes,
            "total_edges": self.total_edges,
            "active_edges": self.active_edges,
            "network_density": self.network_density,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Statistics:
        return cls(
            total_nodes=int(data.get("total_nodes", 0)),
            active_nodes=int(data.get("active_nodes", 0)),
            total_edges=int(data.get("total_edges", 0)),
            active_edges=int(data.get("active_edges", 0)),
            network_density=_float(data.get("network_density")),
        )


@dataclass
class HealthStatus:
    level: HealthLevel
    score: float
    assessed_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "score": self.score,
            "assessed_at": self.assessed_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HealthStatus:
        return cls(
            level=HealthLevel(data["level"]),
            score=_float(data.get("score")),
            assessed_at=str(data.get("assessed_at", "")),
        )


def _coordinate_dict(coord: GeoCoordinate) -> dict[str, float]:
    return {"latitude": coord.latitude, "longitude": coord.longitude}


def _coordinate_from(data: Mapping[str, Any] | None) -> GeoCoordinate:
    data = data or {}
    return GeoCoordinate(_float(data.get("latitude")), _float(data.get("longitude")))


@dataclass
class GeographicBounds:
    """Bounding box and center used to frame the map."""

    north_east: GeoCoordinate = GeoCoordinate(0.0, 0.0)
    south_west: GeoCoordinate = GeoCoordinate(0.0, 0.0)
    center: GeoCoordinate = GeoCoordinate(0.0, 0.0)
    zoom_level: int = 8

    @property
    def is_degenerate(self) -> bool:
        return self.north_east.is_zero and self.south_west.is_zero

    def to_dict(self) -> dict[str, Any]:
        return {
            "north_east": _coordinate_dict(self.north_east),
            "south_west": _coordinate_dict(self.south_west),
            "center": _coordinate_dict(self.center),
            "zoom_level": self.zoom_level,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GeographicBounds:
        return cls(
            north_east=_coordinate_from(data.get("north_east")),
            south_west=_coordinate_from(data.get("south_west")),
            center=_coordinate_from(data.get("center")),
            zoom_level=int(data.get("zoom_level", 8)),
        )


@dataclass
class Topology:
    """A synthesized network topology.

    Only one topology is materialized at a time under ``TOPOLOGY_ID``;
    regeneration replaces it.
    """

    nodes: list[Node]
    edges: list[Edge]
    statistics: Statistics
    health: HealthStatus
    bounds: GeographicBounds
    last_updated: str
    topology_id: str = TOPOLOGY_ID
    name: str = "Generated Network Topology"
    topology_type: str = "physical"

    def node_ids(self) -> list[str]:
        return [node.node_id for node in self.nodes]

    def to_dict(self) -> dict[str, Any]:
        return {
            "topology_id": self.topology_id,
            "name": self.name,
            "topology_type": self.topology_type,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "statistics": self.statistics.to_dict(),
            "health": self.health.to_dict(),
            "bounds": self.bounds.to_dict(),
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Topology:
        return cls(
            topology_id=str(data.get("topology_id", TOPOLOGY_ID)),
            name=str(data.get("name", "Generated Network Topology")),
            topology_type=str(data.get("topology_type", "physical")),
            nodes=[Node.from_dict(item) for item in data.get("nodes", [])],
            edges=[Edge.from_dict(item) for item in data.get("edges", [])],
            statistics=Statistics.from_dict(data.get("statistics", {})),
            health=HealthStatus.from_dict(data["health"]),
            bounds=GeographicBounds.from_dict(data.get("bounds", {})),
            last_updated=str(data.get("last_updated", "")),
        )
