"""Kernel – errors and time primitives shared by every flcm_rollout layer."""
