# src/tickly/errors.py

from __future__ import annotations


class TicklyError(Exception):
    """Base class for errors raised by tickly."""


class TaskValidationError(TicklyError, ValueError):
    """A task is not in a state a user action may produce."""


class BundleError(TicklyError):
    """A data bundle could not be read or parsed."""
