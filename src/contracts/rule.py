"""Player-authored detection rule and its validation."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from src.contracts.enums import EventType


class RuleValidationError(ValueError):
    """Raised when a rule submission violates the rule invariants."""


# condition type -> name of the parameter field in the presentation payload
PARAMETER_FIELDS: dict[str, str] = {
    EventType.LOGIN_FAIL.value: "threshold",
    EventType.TRAFFIC_SPIKE.value: "threshold",
    EventType.PROCESS_SPAWN.value: "processName",
    EventType.DNS_QUERY.value: "domainKeyword",
    EventType.HTTP_ERROR.value: "errorCodeThreshold",
    EventType.UNAUTHORIZED_ACCESS.value: "resourceKeyword",
    EventType.SERVICE_FAILURE.value: "serviceName",
}

_INTEGER_TYPES = frozenset({
    EventType.LOGIN_FAIL.value,
    EventType.TRAFFIC_SPIKE.value,
    EventType.HTTP_ERROR.value,
})

HTTP_CODE_RANGE = (100, 599)


def _parse_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool):
        raise RuleValidationError(f"{field_name} must be an integer, got {raw!r}")
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise RuleValidationError(f"{field_name} must be an integer, got {raw!r}") from None


def parse_parameter(condition_type: str, raw: Any) -> int | str:
    """Validate and normalise the type-specific rule parameter.

    Raises:
        RuleValidationError: On any invariant violation.
    """
    field_name = PARAMETER_FIELDS.get(condition_type)
    if field_name is None:
        raise RuleValidationError(f"Unsupported condition type: {condition_type!r}")
    if raw is None or raw == "":
        raise RuleValidationError(f"{field_name} is required for {condition_type}")

    if condition_type in _INTEGER_TYPES:
        value = _parse_int(raw, field_name)
        if condition_type == EventType.HTTP_ERROR.value:
            lo, hi = HTTP_CODE_RANGE
            if not lo <= value <= hi:
                raise RuleValidationError(
                    f"{field_name} must lie in [{lo}, {hi}], got {value}")
        return value

    if not isinstance(raw, str) or not raw.strip():
        raise RuleValidationError(f"{field_name} must be a non-empty string")
    return raw.strip()


@dataclass(slots=True, frozen=True)
class Rule:
    """A validated rule.

    Immutable; toggling ``enabled`` means storing a copy made with
    ``dataclasses.replace``.
    """

    condition_type: str
    parameter: int | str
    combinator: str = "AND"   # reserved for compound conditions
    rule_id: str = ""
    name: str = ""
    enabled: bool = True

    @property
    def parameter_field(self) -> str:
        return PARAMETER_FIELDS[self.condition_type]

    def to_dict(self) -> dict[str, Any]:
        """Presentation/snapshot form, using the payload field names."""
        return {
            "id": self.rule_id,
            "name": self.name,
            "conditionType": self.condition_type,
            self.parameter_field: self.parameter,
            "combinator": self.combinator,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Rule:
        """Build a Rule from a payload, validating it first.

        Raises:
            RuleValidationError: If *data* is not a valid rule.
        """
        if not isinstance(data, dict):
            raise RuleValidationError("Rule must be a mapping")
        condition_type = data.get("conditionType") or data.get("condition_type")
        if not condition_type:
            raise RuleValidationError("conditionType is required")
        field_name = PARAMETER_FIELDS.get(condition_type)
        raw = data.get(field_name) if field_name else None
        if raw is None:
            raw = data.get("parameter")
        parameter = parse_parameter(condition_type, raw)
        return cls(
            condition_type=condition_type,
            parameter=parameter,
            combinator=str(data.get("combinator") or "AND"),
            rule_id=str(data.get("id") or data.get("rule_id") or ""),
            name=str(data.get("name") or ""),
            enabled=bool(data.get("enabled", True)),
        )


def validate_rule(data: Any) -> tuple[bool, str]:
    """Return ``(True, "")`` for a valid payload, else ``(False, reason)``."""
    try:
        Rule.from_dict(data)
    except RuleValidationError as exc:
        return False, str(exc)
    return True, ""


def ensure_rule(data: Rule | dict[str, Any] | None) -> Rule:
    """Return a validated Rule from a payload or an already-built Rule.

    A Rule built directly bypasses ``from_dict``, so its condition type and
    parameter are checked again here.

    Raises:
        RuleValidationError: If *data* is not a valid rule.
    """
    if isinstance(data, Rule):
        parameter = parse_parameter(data.condition_type, data.parameter)
        return dataclasses.replace(data, parameter=parameter)
    return Rule.from_dict(data)
