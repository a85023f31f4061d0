"""Canonical enumerations shared by the simulation core."""

from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    MALICIOUS = "malicious"
    NOISE = "noise"
    FALSE_POSITIVE = "false_positive"


class EventType(str, Enum):
    # malicious
    LOGIN_FAIL = "login_fail"
    TRAFFIC_SPIKE = "traffic_spike"
    PROCESS_SPAWN = "process_spawn"
    DNS_QUERY = "dns_query"
    HTTP_ERROR = "http_error"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    SERVICE_FAILURE = "service_failure"
    SQL_INJECTION = "sql_injection"
    # noise
    NORMAL_ACTIVITY = "normal_activity"
    ROUTINE_LOGIN = "routine_login"
    SCHEDULED_BACKUP = "scheduled_backup"
    SYSTEM_UPDATE = "system_update"
    # false positives
    FALSE_POSITIVE_SCAN = "false_positive_scan"
    DEV_TESTING = "dev_testing"
    MAINTENANCE_RESTART = "maintenance_restart"
    # synthetic duplicate raised by the loop for noisy events
    POTENTIAL_FALSE_POSITIVE = "potential_false_positive"


class Action(str, Enum):
    BLOCK_IP = "block_ip"
    RESET_PASSWORD = "reset_password"
    RATE_LIMIT = "rate_limit"
    TERMINATE_PROCESS = "terminate_process"
    BLACKLIST_DOMAIN = "blacklist_domain"
    PATCH_VULNERABILITY = "patch_vulnerability"
    REVOKE_ACCESS = "revoke_access"
    RESTORE_BACKUP = "restore_backup"
    REBOOT_SERVER = "reboot_server"
    # manual actions that are not remediations
    APPLY_RULE = "apply_rule"
    STOP_TIMER = "stop_timer"
    CLEAR_LOG = "clear_log"


class Severity(str, Enum):
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
