"""Adapters to third-party libraries."""
