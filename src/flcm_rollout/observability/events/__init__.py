"""Observability – named events."""
from flcm_rollout.observability.events.emitter import EventEmitter, Listener

__all__ = ["EventEmitter", "Listener"]
