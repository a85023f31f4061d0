"""Manual remediation actions: which action tags work against which events."""

from __future__ import annotations

from src.contracts.enums import Action, EventType
from src.contracts.event import Event

# Generic equivalences on top of each event's own remediation list
FALLBACK_EFFECTIVE: dict[str, frozenset[str]] = {
    Action.BLOCK_IP.value: frozenset({
        EventType.DNS_QUERY.value,
        EventType.HTTP_ERROR.value,
        EventType.TRAFFIC_SPIKE.value,
        EventType.SQL_INJECTION.value,
    }),
    Action.REBOOT_SERVER.value: frozenset({
        EventType.SERVICE_FAILURE.value,
        EventType.PROCESS_SPAWN.value,
    }),
    Action.RESET_PASSWORD.value: frozenset({
        EventType.LOGIN_FAIL.value,
        EventType.UNAUTHORIZED_ACCESS.value,
    }),
}

SPECIAL_ACTIONS = frozenset({
    Action.APPLY_RULE.value,
    Action.STOP_TIMER.value,
    Action.CLEAR_LOG.value,
})


def is_effective(event: Event, action: str) -> bool:
    """True if *action* mitigates *event*."""
    if action in event.remediation:
        return True
    return event.type in FALLBACK_EFFECTIVE.get(action, frozenset())


def format_action(action: str) -> str:
    return str(action).replace("_", " ")
