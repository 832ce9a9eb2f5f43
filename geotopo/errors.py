"""Exception types raised by geotopo.

Only resource loading and the service boundary raise. Unresolved locations,
empty device lists and malformed gazetteer rows are reported through logging
and degrade the result instead of aborting it.
"""

from __future__ import annotations


class GeoTopoError(Exception):
    """Base class for geotopo errors."""


class ResourceLoadError(GeoTopoError):
    """A reference file (gazetteer table, map descriptor) is missing or unreadable."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load {path}: {reason}")


class InventoryFetchError(GeoTopoError):
    """The upstream device inventory could not be fetched."""
