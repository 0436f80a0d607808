"""Registry data models — athletes and their achievements."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class Athlete:
    """A registered athlete profile."""

    # Identity
    id: int
    name: str
    sport: str
    age: int
    country: str = ""
    owner: str = ""  # Caller identity that registered the profile

    # State
    achievement_count: int = 0
    is_verified: bool = False
    is_active: bool = True

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Athlete:
        return cls(
            id=int(data["id"]),
            name=data["name"],
            sport=data["sport"],
            age=int(data["age"]),
            country=data.get("country", ""),
            owner=data.get("owner", ""),
            achievement_count=int(data.get("achievement_count", 0)),
            is_verified=bool(data.get("is_verified", False)),
            is_active=bool(data.get("is_active", True)),
        )


@dataclass
class Achievement:
    """A single achievement recorded against an athlete."""

    athlete_id: int
    id: int
    title: str
    description: str = ""
    created_at: int = 0  # UNIX seconds
    is_verified: bool = False

    @property
    def key(self) -> tuple[int, int]:
        return (self.athlete_id, self.id)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Achievement:
        return cls(
            athlete_id=int(data["athlete_id"]),
            id=int(data["id"]),
            title=data["title"],
            description=data.get("description", ""),
            created_at=int(data.get("created_at", 0)),
            is_verified=bool(data.get("is_verified", False)),
        )
