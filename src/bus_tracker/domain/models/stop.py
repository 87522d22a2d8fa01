"""Stop domain model."""

from dataclasses import dataclass, field


@dataclass(unsafe_hash=True)
class Stop:
    """A physical transit stop, identified by its integer code.

    Equality and hashing only consider ``code``; the other fields are
    attributes of the stop and may differ between copies.
    """

    code: int
    name: str = field(default="", compare=False)
    latitude: float | None = field(default=None, compare=False)
    longitude: float | None = field(default=None, compare=False)
    favorited: bool = field(default=False, compare=False)

    @property
    def location(self) -> tuple[float, float] | None:
        """Latitude and longitude, or None unless both are known."""
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude
