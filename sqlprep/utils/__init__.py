"""Utility helpers shared across sqlprep."""

from sqlprep.utils import logging

__all__ = ("logging",)
