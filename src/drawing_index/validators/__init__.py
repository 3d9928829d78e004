"""Validators module for the drawing index.

This module contains validation classes for incoming files including
the format allow-list and file size checks.
"""

from .validators import FileValidator

__all__ = ["FileValidator"]
