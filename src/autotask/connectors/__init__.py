"""Operator-facing connectors (console)."""
