"""Geographic Topology Synthesis.

Turns a flat device inventory into a renderable network topology: free-text
device locations are resolved against a world city gazetteer, devices become
nodes connected by synthesized edges, and coordinates are projected onto a
world map viewport.
"""

from .config import GeoTopoConfig
from .export import load_inventory, load_topology_json, save_topology_json
from .gazetteer import Gazetteer, load_gazetteer, shared_gazetteer
from .projection import MapProjector, load_map_descriptor
from .resolver import LocationResolver, parse_location
from .service import TopologyService
from .synthesizer import TopologySynthesizer, validate_topology

__version__ = "0.1.0"

__all__ = [
    "GeoTopoConfig",
    "Gazetteer",
    "LocationResolver",
    "MapProjector",
    "TopologyService",
    "TopologySynthesizer",
    "load_gazetteer",
    "load_inventory",
    "load_map_descriptor",
    "load_topology_json",
    "parse_location",
    "save_topology_json",
    "shared_gazetteer",
    "validate_topology",
]
