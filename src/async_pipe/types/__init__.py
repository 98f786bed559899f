"""Reusable type definitions for the pipe package."""

from .base import StrictBaseModel

__all__ = [
    "StrictBaseModel",
]
