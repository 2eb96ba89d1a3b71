"""Resilience patterns."""
