"""Departure domain model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Departure:
    """A scheduled departure of a route at a stop, as announced by the feed."""

    route_name: str
    notes: str = ""
