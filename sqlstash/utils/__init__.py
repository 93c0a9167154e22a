"""Utility functions and classes for SQLStash."""

from sqlstash.utils.logging import get_logger

__all__ = ("get_logger",)
