"""Threat catalog — weighted event templates read from threats.yaml."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from src.contracts.enums import Category
from src.shared.config_loader import config_path, load_yaml

log = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Raised when the catalog breaks a template invariant."""


@dataclass(slots=True, frozen=True)
class Template:
    """One catalog row."""
    type: str
    category: str
    description: str
    likelihood: float
    base_severity: int
    area: str = ""
    escalation: str = ""
    remediation: tuple[str, ...] = ()
    education: str = ""
    is_noise: bool = False
    scaling_frequency: float | None = None
    url_template: str = ""

    @property
    def is_malicious(self) -> bool:
        return self.category == Category.MALICIOUS.value


def _remediation(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, str):
        return tuple(r.strip() for r in raw.split(",") if r.strip())
    return tuple(str(r) for r in raw or ())


def parse_template(row: dict[str, Any]) -> Template:
    category = row.get("category", "")
    if category not in {c.value for c in Category}:
        raise CatalogError(f"{row.get('type')}: unknown category {category!r}")
    scaling = row.get("level_scaling", {}).get("frequency", row.get("scaling_frequency"))
    return Template(
        type=row["type"],
        category=category,
        description=row.get("description", ""),
        likelihood=float(row.get("likelihood", 0.0)),
        base_severity=int(row.get("base_severity", 1)),
        area=row.get("area", ""),
        escalation=row.get("escalation", ""),
        remediation=_remediation(row.get("remediation")),
        education=row.get("education", ""),
        is_noise=bool(row.get("is_noise", category == Category.NOISE.value)),
        scaling_frequency=float(scaling) if scaling is not None else None,
        url_template=row.get("url_template", ""),
    )


def build_catalog(
    threats_cfg: dict[str, Any],
    escalation_types: Iterable[str] | None = None,
) -> list[Template]:
    """Parse the ``templates`` section and enforce the malicious-row invariants.

    Every malicious template needs a non-empty remediation list and an
    escalation profile; when *escalation_types* is given the template type
    must also have a scenario there.

    Raises:
        CatalogError: On an empty catalog or a broken invariant.
    """
    templates = [parse_template(row) for row in threats_cfg.get("templates", [])]
    if not templates:
        raise CatalogError("Threat catalog is empty")

    known = set(escalation_types) if escalation_types is not None else None
    for t in templates:
        if not 1 <= t.base_severity <= 10:
            raise CatalogError(f"{t.type}: base_severity must be in 1..10")
        if t.likelihood < 0:
            raise CatalogError(f"{t.type}: likelihood must be non-negative")
        if not t.is_malicious:
            continue
        if not t.remediation:
            raise CatalogError(f"{t.type}: malicious template without remediation")
        if not t.escalation:
            raise CatalogError(f"{t.type}: malicious template without escalation profile")
        if known is not None and t.type not in known:
            raise CatalogError(f"{t.type}: no escalation scenario defined")

    log.info("Threat catalog: %d templates (%d malicious)",
             len(templates), sum(t.is_malicious for t in templates))
    return templates


def load_catalog(
    config_dir: str | Path | None = None,
    escalation_types: Iterable[str] | None = None,
) -> tuple[list[Template], dict[str, Any]]:
    """Load threats.yaml; returns ``(templates, field_pools)``."""
    cfg = load_yaml(config_path(config_dir, "threats.yaml"))
    return build_catalog(cfg, escalation_types), cfg.get("field_pools", {})
