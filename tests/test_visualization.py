"""Tests for topology map preview export."""

from __future__ import annotations

from pathlib import Path

import pytest

from geotopo.models import GeographicBounds, HealthLevel, HealthStatus, Statistics, Topology
from geotopo.projection import MapProjector
from geotopo.service import to_devices
from geotopo.synthesizer import TopologySynthesizer
from geotopo.visualization import export_topology_map, node_positions


@pytest.fixture
def topology(resolver, inventory_records):
    return TopologySynthesizer(resolver).generate(to_devices(inventory_records))


def test_node_positions_use_projector(topology) -> None:
    projector = MapProjector()

    positions = node_positions(topology, projector)

    assert positions["dev-nyc"] == projector.convert(40.7128, -74.0060)
    for point in positions.values():
        assert 0 <= point.x <= 1000
        assert 0 <= point.y <= 500


def test_export_topology_map(tmp_path: Path, topology) -> None:
    """Export a small topology and verify the PNG is created and non-trivial."""
    out = tmp_path / "maps" / "topology.png"

    export_topology_map(topology, MapProjector(), out, dpi=72)

    assert out.exists()
    assert out.stat().st_size > 1000


def test_export_empty_topology_raises(tmp_path: Path) -> None:
    empty = Topology(
        nodes=[],
        edges=[],
        statistics=Statistics(),
        health=HealthStatus(HealthLevel.CRITICAL, 0.0, ""),
        bounds=GeographicBounds(),
        last_updated="",
    )

    with pytest.raises(ValueError, match="no nodes"):
        export_topology_map(empty, MapProjector(), tmp_path / "empty.png")

    assert not (tmp_path / "empty.png").exists()
