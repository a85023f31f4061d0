"""Level descriptor — one row of the ordered level table."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Level:
    level: int                          # 1-based ordinal
    name: str
    description: str
    event_frequency_multiplier: float
    noise_event_probability: float
    attack_sophistication: str          # basic | intermediate | advanced
    target_score: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
