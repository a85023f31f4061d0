"""Analyzer — reactive side of the simulation.

Modules
───────
  rule_engine  — player rules: validation and live matching
  escalation   — damage and uptime impact of escalated events
  actions      — effectiveness of manual remediation actions
"""
