"""Canonical Event data-class — one simulated security occurrence."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from datetime import UTC, datetime
from typing import Any

from src.contracts.enums import Category

# Type-specific fields filled by the generator.
DETAIL_FIELDS: list[str] = [
    "ip",
    "user",
    "process",
    "domain",
    "code",
    "url",
    "resource",
    "service",
    "count",
    "volume",
    "action",
    "status",
]


def iso_ms(epoch_ms: int) -> str:
    """Render an epoch-milliseconds instant as ISO-8601 UTC with milliseconds."""
    dt = datetime.fromtimestamp(epoch_ms / 1000, tz=UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{epoch_ms % 1000:03d}Z"


@dataclass(slots=True, frozen=True)
class Event:
    """One generated event; never mutated after creation."""

    # ── mandatory ──
    timestamp: str          # ISO-8601 UTC e.g. "2026-02-26T10:00:00.000Z"
    type: str               # EventType value
    category: str           # malicious | noise | false_positive
    severity: int           # 1..10
    description: str

    # ── catalog copies ──
    event_id: int = 0       # unique per generator; 0 = unknown (external event)
    is_noise: bool = False
    remediation: tuple[str, ...] = ()
    area: str = ""          # authentication | network | endpoint | web | ...
    escalation: str = ""    # escalation scenario name
    education: str = ""

    # ── type-specific ──
    ip: str = ""
    user: str = ""
    process: str = ""
    domain: str = ""
    code: int | None = None
    url: str = ""
    resource: str = ""
    service: str = ""
    count: int | None = None
    volume: int | None = None
    action: str = ""
    status: str = ""

    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_malicious(self) -> bool:
        return self.category == Category.MALICIOUS.value

    @property
    def is_false_positive(self) -> bool:
        return self.category == Category.FALSE_POSITIVE.value

    @property
    def match_key(self) -> tuple[str, str, str]:
        """Composite key used when an event carries no id."""
        return (self.timestamp, self.type, self.ip)

    # ── serialisation ─────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["remediation"] = list(self.remediation)
        if not data["extra"]:
            del data["extra"]
        return data

    def to_json(self) -> str:
        """Return compact JSON string."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        """Rebuild an Event from ``to_dict`` output or a presentation payload.

        Unknown keys are kept in ``extra``; a comma-separated remediation
        string is accepted as well as a list.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = dict(data.get("extra", {}))
        extra.update({k: v for k, v in data.items() if k not in known})

        rem = kwargs.get("remediation", ())
        if isinstance(rem, str):
            rem = [r.strip() for r in rem.split(",") if r.strip()]
        kwargs["remediation"] = tuple(rem)
        if "isNoise" in extra:
            kwargs.setdefault("is_noise", bool(extra.pop("isNoise")))
        return cls(extra=extra, **kwargs)
