"""Error taxonomy for command handling.

Every error carries the text shown to the invoking user and, optionally, a
button layout. The dispatcher is the only place these are turned into replies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lookupbot.transport import Buttons


class BotError(Exception):
    """Base class for errors reported back to the invoking user."""

    def __init__(self, message: str, buttons: Buttons | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.buttons = buttons


class ValidationError(BotError):
    """Missing or malformed command argument. Never consumes a credit."""


class NotFoundError(BotError):
    """The target account or registration request does not exist."""


class AuthorizationError(BotError):
    """The actor may not invoke this command."""


class ApprovalRequiredError(AuthorizationError):
    """An unapproved account invoked an approval-gated command."""


class MembershipRequiredError(AuthorizationError):
    """The actor has not satisfied the channel membership gate."""


class MaintenanceError(BotError):
    """Maintenance mode is on and the actor is not an admin."""


class InsufficientCreditsError(BotError):
    """A paid command could not be debited."""


class CollaboratorFailure(Exception):
    """An external API errored, timed out or returned nothing usable."""

    pass
