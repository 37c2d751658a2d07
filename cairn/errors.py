"""Exceptions raised by the Cairn engine.

Every failure is local and synchronous; callers decide how to surface it.
"""

from __future__ import annotations


class CairnError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(CairnError, ValueError):
    """Caller passed malformed data (negative counts, out-of-order dates, ...)."""


class NotFoundError(CairnError, LookupError):
    """A reward, goal or achievement id does not exist."""


class AlreadyClaimedError(CairnError):
    """The reward was claimed before."""


class ExpiredError(CairnError):
    """The reward's validity window has passed."""
