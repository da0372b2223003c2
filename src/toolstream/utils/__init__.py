"""Shared utilities (logging bootstrap)."""
