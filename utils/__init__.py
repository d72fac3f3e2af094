"""Shared utilities (logging)."""

__all__ = ['logging_config']
