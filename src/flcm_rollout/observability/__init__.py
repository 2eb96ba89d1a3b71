"""Observability – logging, metrics ports and events."""
