"""Topology synthesis from a device inventory.

Builds a ``Topology`` from a list of devices:

1. Devices without equipment metadata are dropped.
2. Each remaining device's coordinates are refreshed from its location text.
3. One node per device; edges in two passes (a connectivity pass that gives
   every device at least one edge, then ``n // 3`` random extra edges).
4. Statistics, health and geographic bounds are derived from the devices.
5. Each device receives 1-3 descriptive links with simulated telemetry.

All randomness comes from an injected ``random.Random``. Give each worker
its own synthesizer (or pass ``rng`` per call); the gazetteer behind the
resolver is the only shared state.

The result is a visualization aid, not a routing computation.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Sequence

import networkx as nx
import numpy as np

from geotopo.config import SynthesisConfig
from geotopo.geo_utils import degree_distance_km
from geotopo.log_config import get_logger
from geotopo.models import (
    Device,
    DeviceStatus,
    DeviceType,
    Edge,
    GeoCoordinate,
    GeographicBounds,
    HealthLevel,
    HealthStatus,
    Link,
    Node,
    NodeStatus,
    NodeType,
    Statistics,
    Topology,
)
from geotopo.resolver import LocationResolver

logger = get_logger(__name__)

_NODE_TYPES = {
    DeviceType.ROUTER: NodeType.ROUTER,
    DeviceType.SWITCH: NodeType.SWITCH,
    DeviceType.FIREWALL: NodeType.FIREWALL,
    DeviceType.SERVER: NodeType.SERVER,
    DeviceType.LOAD_BALANCER: NodeType.LOAD_BALANCER,
    DeviceType.GATEWAY: NodeType.GATEWAY,
}

_NODE_STATUSES = {
    DeviceStatus.ONLINE: NodeStatus.ONLINE,
    DeviceStatus.OFFLINE: NodeStatus.OFFLINE,
    DeviceStatus.WARNING: NodeStatus.WARNING,
    DeviceStatus.CRITICAL: NodeStatus.CRITICAL,
    DeviceStatus.MAINTENANCE: NodeStatus.MAINTENANCE,
}


def node_type_for(device_type: DeviceType) -> NodeType:
    return _NODE_TYPES.get(device_type, NodeType.UNKNOWN)


def node_status_for(device_status: DeviceStatus) -> NodeStatus:
    return _NODE_STATUSES.get(device_status, NodeStatus.UNKNOWN)


def classify_health(
    score: float, healthy_threshold: float = 90.0, warning_threshold: float = 70.0
) -> HealthLevel:
    """Classify a 0-100 health score; thresholds are inclusive."""
    if score >= healthy_threshold:
        return HealthLevel.HEALTHY
    if score >= warning_threshold:
        return HealthLevel.WARNING
    return HealthLevel.CRITICAL


def estimated_edge_count(node_count: int, density_divisor: int = 3) -> int:
    """Edge count the two-pass generator aims for: ``n - 1 + n // divisor``.

    The actual count can differ because random extra edges that duplicate an
    existing pair are skipped.
    """
    if node_count < 1:
        return 0
    return node_count - 1 + node_count // density_divisor


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class TopologySynthesizer:
    """Builds topologies from device inventories."""

    def __init__(
        self,
        resolver: LocationResolver,
        config: SynthesisConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.resolver = resolver
        self.config = config or SynthesisConfig()
        self.rng = rng if rng is not None else random.Random(self.config.seed)

    def generate(
        self, devices: Sequence[Device] | None, rng: random.Random | None = None
    ) -> Topology | None:
        """Synthesize a topology.

        Args:
            devices: Inventory devices. Their coordinates and link lists are
                updated in place.
            rng: Random source for this call; defaults to the synthesizer's.

        Returns:
            The topology, or None when there is nothing to render (no devices,
            or none with equipment metadata).
        """
        if not devices:
            logger.info("No devices supplied; skipping topology generation")
            return None

        rng = rng or self.rng
        usable = [device for device in devices if device.equipment is not None]
        skipped = len(devices) - len(usable)
        if skipped:
            logger.info(f"Skipping {skipped} devices without equipment metadata")
        if not usable:
            logger.info("No devices with equipment metadata; skipping topology generation")
            return None

        resolved = sum(self.resolver.refresh_device(device) for device in usable)
        logger.info(f"Resolved coordinates for {resolved}/{len(usable)} devices")

        nodes = self.build_nodes(usable)
        edges = self.build_edges(usable, rng)
        statistics = self.compute_statistics(usable)
        health = self.assess_health(usable)
        bounds = self.compute_bounds(usable)
        self.build_links(usable, rng)

        topology = Topology(
            nodes=nodes,
            edges=edges,
            statistics=statistics,
            health=health,
            bounds=bounds,
            last_updated=_timestamp(),
        )
        logger.info(
            f"Generated topology: {len(nodes)} nodes, {len(edges)} edges, "
            f"health {health.level.value} ({health.score:.1f})"
        )
        return topology

    def build_nodes(self, devices: Sequence[Device]) -> list[Node]:
        nodes = []
        for device in devices:
            equipment = device.equipment
            if equipment is None:
                continue
            device_type = equipment.device_type
            nodes.append(
                Node(
                    node_id=device.id,
                    name=equipment.sys_name,
                    node_type=node_type_for(device_type),
                    status=node_status_for(equipment.device_status),
                    location=equipment.location,
                    coordinates=equipment.coordinates,
                    routing_capable=device_type is DeviceType.ROUTER,
                    switching_capable=device_type is DeviceType.SWITCH,
                    firewall_capable=device_type is DeviceType.FIREWALL,
                    load_balancing_capable=device_type is DeviceType.LOAD_BALANCER,
                )
            )
        return nodes

    def _make_edge(self, source: str, target: str, rng: random.Random) -> Edge:
        low_w, high_w = self.config.weight_range
        low_c, high_c = self.config.cost_range
        return Edge(
            edge_id=f"edge-{source}-{target}",
            source=source,
            target=target,
            weight=rng.uniform(low_w, high_w),
            cost=rng.randint(low_c, high_c),
            label=f"Link {source} to {target}",
        )

    def build_edges(self, devices: Sequence[Device], rng: random.Random) -> list[Edge]:
        """Generate edges guaranteeing every device participates in one.

        Pass 1 walks devices in order and connects each device that has no
        edge yet to the first other device. Pass 2 attempts ``n // divisor``
        random pairs, skipping self pairs and pairs already connected.
        """
        edges: list[Edge] = []
        if len(devices) < 2:
            return edges

        graph = nx.Graph()
        graph.add_nodes_from(device.id for device in devices)

        def add(source: str, target: str) -> None:
            edge = self._make_edge(source, target, rng)
            graph.add_edge(source, target)
            edges.append(edge)

        for device in devices:
            if graph.degree(device.id) > 0:
                continue
            for target in devices:
                if target.id != device.id and not graph.has_edge(device.id, target.id):
                    add(device.id, target.id)
                    break

        extra_attempts = len(devices) // self.config.density_divisor
        for _ in range(extra_attempts):
            src = devices[rng.randrange(len(devices))]
            dst = devices[rng.randrange(len(devices))]
            if src.id == dst.id or graph.has_edge(src.id, dst.id):
                continue
            add(src.id, dst.id)

        return edges

    def _distance_km(self, source: Device, target: Device, rng: random.Random) -> float:
        a, b = source.equipment, target.equipment
        if a is None or b is None:
            return 0.0
        if not a.has_coordinates or not b.has_coordinates:
            # Placeholder when either endpoint is unplaced
            return float(rng.randint(100, 1099))
        distance = degree_distance_km(a.latitude, a.longitude, b.latitude, b.longitude)
        if distance < 1:
            return float(rng.randint(1, 50))
        return distance

    def build_links(self, devices: Sequence[Device], rng: random.Random) -> None:
        """Replace each device's links with 1-3 simulated links to other devices."""
        low, high = self.config.links_per_device
        for device in devices:
            device.links = []
            targets = [other for other in devices if other.id != device.id]
            if not targets:
                continue

            for i in range(rng.randint(low, high)):
                target = rng.choice(targets)
                target_name = target.equipment.sys_name if target.equipment else target.id
                device.links.append(
                    Link(
                        link_id=f"link-{device.id}-{target.id}-{i}",
                        name=f"Link to {target_name}",
                        from_node=device.id,
                        to_node=target.id,
                        bandwidth=rng.choice(self.config.bandwidths),
                        utilization_percent=rng.random() * 80,
                        latency_ms=rng.random() * 50 + 1,
                        distance_km=self._distance_km(device, target, rng),
                        uptime=f"{rng.randrange(365)}d {rng.randrange(24)}h",
                        error_rate=rng.random() * 0.1,
                        availability_percent=95.0 + rng.random() * 5.0,
                    )
                )

    @staticmethod
    def _active_count(devices: Sequence[Device]) -> int:
        return sum(
            1
            for device in devices
            if device.equipment is not None
            and device.equipment.device_status is DeviceStatus.ONLINE
        )

    def compute_statistics(self, devices: Sequence[Device]) -> Statistics:
        """Node counts plus the estimated edge count and density."""
        total = len(devices)
        estimated = estimated_edge_count(total, self.config.density_divisor)
        max_edges = total * (total - 1) / 2
        return Statistics(
            total_nodes=total,
            active_nodes=self._active_count(devices),
            total_edges=estimated,
            active_edges=estimated,
            network_density=estimated / max_edges if max_edges else 0.0,
        )

    def assess_health(self, devices: Sequence[Device]) -> HealthStatus:
        total = len(devices)
        score = 100.0 * self._active_count(devices) / total if total else 0.0
        level = classify_health(
            score, self.config.healthy_threshold, self.config.warning_threshold
        )
        return HealthStatus(level=level, score=score, assessed_at=_timestamp())

    def compute_bounds(self, devices: Sequence[Device]) -> GeographicBounds:
        """Bounding box over devices with non-zero coordinates."""
        placed = [
            (device.equipment.latitude, device.equipment.longitude)
            for device in devices
            if device.equipment is not None and device.equipment.has_coordinates
        ]
        if not placed:
            return GeographicBounds(zoom_level=self.config.zoom_level)

        coords = np.array(placed, dtype=float)
        min_lat, min_lng = coords.min(axis=0)
        max_lat, max_lng = coords.max(axis=0)
        return GeographicBounds(
            north_east=GeoCoordinate(float(max_lat), float(max_lng)),
            south_west=GeoCoordinate(float(min_lat), float(min_lng)),
            center=GeoCoordinate(
                float((min_lat + max_lat) / 2), float((min_lng + max_lng) / 2)
            ),
            zoom_level=self.config.zoom_level,
        )


def validate_topology(topology: Topology) -> list[str]:
    """Check structural invariants of a synthesized topology.

    Issues are logged as warnings and returned; nothing is raised.

    Returns:
        Human-readable descriptions of each violated invariant.
    """
    issues: list[str] = []
    graph = nx.Graph()
    node_ids = topology.node_ids()
    graph.add_nodes_from(node_ids)

    if len(set(node_ids)) != len(node_ids):
        issues.append("Duplicate node ids")

    for edge in topology.edges:
        if edge.source == edge.target:
            issues.append(f"Self-loop edge {edge.edge_id}")
            continue
        for endpoint in (edge.source, edge.target):
            if endpoint not in graph:
                issues.append(f"Edge {edge.edge_id} references unknown node {endpoint}")
        if graph.has_edge(edge.source, edge.target):
            issues.append(f"Duplicate edge between {edge.source} and {edge.target}")
        graph.add_edge(edge.source, edge.target)

    if graph.number_of_nodes() >= 2:
        isolated = sorted(nx.isolates(graph))
        if isolated:
            issues.append(f"{len(isolated)} nodes without edges: {', '.join(isolated)}")

    for issue in issues:
        logger.warning(f"Topology {topology.topology_id}: {issue}")
    if not issues:
        logger.debug(f"Topology {topology.topology_id} passed validation")
    return issues
