"""Contracts — canonical data structures shared by all modules."""

from src.contracts.enums import Action, Category, EventType, Severity
from src.contracts.event import Event
from src.contracts.level import Level
from src.contracts.rule import Rule, RuleValidationError
from src.contracts.state import GameState, PendingMaliciousEntry, TrafficSample

__all__ = [
    "Action",
    "Category",
    "Event",
    "EventType",
    "GameState",
    "Level",
    "PendingMaliciousEntry",
    "Rule",
    "RuleValidationError",
    "Severity",
    "TrafficSample",
]
