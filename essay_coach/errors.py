"""User-recoverable failures of the essay coach.

Nothing here is fatal: each error leaves the session in a quiet state the user
can correct. A suggestion whose target has disappeared from the essay is not
an error at all; applying it is simply a no-op.
"""

from __future__ import annotations


class EssayCoachError(Exception):
    """Base class for errors surfaced to the user."""

    user_message = "Something went wrong. Please try again."


class InputError(EssayCoachError):
    """The essay is empty or whitespace-only; no analysis request is sent."""

    user_message = "Please enter your essay."


class TransportError(EssayCoachError):
    """The analysis call failed or returned an unusable response.

    The underlying provider or validation error is chained as ``__cause__``.
    """
