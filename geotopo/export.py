"""JSON serialization for topologies and device inventories."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from geotopo.errors import ResourceLoadError
from geotopo.log_config import get_logger
from geotopo.models import Device, Topology
from geotopo.service import to_devices

logger = get_logger(__name__)


def _to_python(obj: Any):
    """Convert numpy scalars and tuples to JSON-friendly Python types."""
    if isinstance(obj, (np.floating, np.integer)):
        return obj.item()
    if isinstance(obj, dict):
        return {k: _to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_python(v) for v in obj]
    return obj


def _write_json(data: Any, path: Path, json_indent: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        json.dump(_to_python(data), f, indent=json_indent)


def save_topology_json(topology: Topology, path: Path, json_indent: int = 2) -> None:
    """Save a topology to JSON.

    Args:
        topology: Topology to save.
        path: Output path for JSON file.
        json_indent: Indentation passed to ``json.dump``.
    """
    logger.info(f"Saving topology to JSON: {path}")
    _write_json(topology.to_dict(), path, json_indent)
    file_size_kb = path.stat().st_size / 1024
    logger.info(
        f"Saved topology: {len(topology.nodes)} nodes, {len(topology.edges)} edges "
        f"({file_size_kb:.1f} KB)"
    )


def load_topology_json(path: Path) -> Topology:
    """Load a topology saved by ``save_topology_json``.

    Raises:
        ResourceLoadError: If the file is missing or not a valid topology.
    """
    logger.info(f"Loading topology from JSON: {path}")
    try:
        with path.open("r") as f:
            data = json.load(f)
        return Topology.from_dict(data)
    except (OSError, json.JSONDecodeError) as e:
        raise ResourceLoadError(path, str(e)) from e
    except (KeyError, TypeError, ValueError) as e:
        raise ResourceLoadError(path, f"invalid topology document: {e}") from e


def load_inventory(path: Path) -> list[Device]:
    """Load devices from an inventory JSON file.

    Accepts a list of device records or an object with a ``"devices"`` key.

    Raises:
        ResourceLoadError: If the file is missing or malformed.
    """
    try:
        with path.open("r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ResourceLoadError(path, str(e)) from e

    if isinstance(data, dict):
        data = data.get("devices", data.get("list", []))
    if not isinstance(data, list):
        raise ResourceLoadError(path, "expected a list of device records")

    devices = to_devices(data)
    logger.info(f"Loaded {len(devices)} devices from {path}")
    return devices


def save_inventory(devices: list[Device], path: Path, json_indent: int = 2) -> None:
    """Save devices, including their generated links, to JSON."""
    _write_json({"devices": [device.to_dict() for device in devices]}, path, json_indent)
    logger.info(f"Saved {len(devices)} devices to {path}")
