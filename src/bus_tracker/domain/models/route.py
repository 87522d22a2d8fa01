"""Route domain model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Route:
    """A bus line, identified by its short name (e.g. "TM")."""

    short_name: str
    name: str = ""
