"""Random generators for the type-specific fields of synthetic events."""

from __future__ import annotations

import random as _random_mod
from typing import Any

_DEFAULT_POOLS: dict[str, Any] = {
    "ip_prefix": "192.168",
    "usernames": ["admin"],
    "processes": ["unknown.exe"],
    "domains": ["example.com"],
    "http_error_codes": [500],
    "urls": ["/"],
    "resources": ["/"],
    "services": ["unknown-service"],
    "login_fail_count": [1, 10],
    "traffic_volume": [100, 599],
}


def _pick(rng: _random_mod.Random, seq: list[Any]) -> Any:
    return seq[rng.randint(0, len(seq) - 1)]


def _randint_range(rng: _random_mod.Random, r: list[int]) -> int:
    """Return random int from a two-element [lo, hi] list."""
    return rng.randint(int(r[0]), int(r[1]))


class FieldGenerators:
    """Pure random draws from the ``field_pools`` section of threats.yaml."""

    def __init__(self, pools: dict[str, Any] | None, rng: _random_mod.Random) -> None:
        self.rng = rng
        self.pools = {**_DEFAULT_POOLS, **(pools or {})}

    def ip(self) -> str:
        return f"{self.pools['ip_prefix']}.{self.rng.randint(0, 254)}.{self.rng.randint(0, 254)}"

    def username(self) -> str:
        return _pick(self.rng, self.pools["usernames"])

    def process_name(self) -> str:
        return _pick(self.rng, self.pools["processes"])

    def domain(self) -> str:
        return _pick(self.rng, self.pools["domains"])

    def http_error_code(self) -> int:
        return int(_pick(self.rng, self.pools["http_error_codes"]))

    def url(self, template: str = "") -> str:
        if template:
            return template.format(n=self.rng.randint(0, 9))
        return _pick(self.rng, self.pools["urls"])

    def resource(self) -> str:
        return _pick(self.rng, self.pools["resources"])

    def service(self) -> str:
        return _pick(self.rng, self.pools["services"])

    def login_fail_count(self) -> int:
        return _randint_range(self.rng, self.pools["login_fail_count"])

    def traffic_volume(self) -> int:
        return _randint_range(self.rng, self.pools["traffic_volume"])
