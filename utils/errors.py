from __future__ import annotations


class QuranHubError(Exception):
    """Base class for errors raised by the study-content and hifz operations."""

    retryable = False


class NotFoundError(QuranHubError):
    """A referenced ayah, surah, content item or user does not exist."""


class InvalidTransitionError(QuranHubError):
    """The requested status change is not allowed from the current status."""


class PreconditionFailedError(QuranHubError):
    """The item is not in a state that allows the operation (e.g. defaulting a pending item)."""


class InvalidArgumentError(QuranHubError, ValueError):
    """Malformed input: negative SRS level, unknown status label, empty text."""


class ConflictError(QuranHubError):
    """The write could not be serialized against a concurrent writer; retry it."""

    retryable = True
