"""Command dispatcher: one generic executor for every command.

Each command is a ``CommandSpec`` (handler, approval requirement, cost, usage
text). ``Dispatcher.execute()`` runs the same sequence for all of them under
the invoking identity's lock:

1. admission screening (membership, maintenance, approval)
2. admin-only check
3. argument validation, before anything is billed
4. debit
5. handler, whose ``Outcome`` decides the settlement:
   ``Success`` counts the query once its reply is delivered, ``SoftFailure``
   and ``HardFailure`` refund. A ``Success`` whose reply cannot be delivered
   is settled as a ``SoftFailure``.

``BotError`` subclasses raised anywhere in the sequence become the reply and
stop processing. Nothing raised by a handler or by reply delivery escapes
``execute()``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Union

from lookupbot import ledger
from lookupbot.accounts import Account
from lookupbot.errors import AuthorizationError, BotError, CollaboratorFailure, ValidationError
from lookupbot.gate import AdmissionGate
from lookupbot.messages import get_message
from lookupbot.store import AccountStore
from lookupbot.transport import Buttons, Responder
from lookupbot.utils.constants import COMMAND_COSTS, ToolTier

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass
class Success:
    """The handler produced a result. ``text`` (if any) is sent as the reply."""

    text: str | None = None
    buttons: Buttons | None = None
    payload: Any = None


@dataclass
class SoftFailure:
    """The collaborator returned nothing usable."""

    reason: str


@dataclass
class HardFailure:
    """The handler raised."""

    error: BaseException


@dataclass
class Blocked:
    """The invocation was stopped before or inside the handler by a ``BotError``."""

    error: BotError


Outcome = Union[Success, SoftFailure, HardFailure]


# ---------------------------------------------------------------------------
# Command table
# ---------------------------------------------------------------------------


@dataclass
class Invocation:
    """One inbound command or callback, already stripped of transport details."""

    actor_id: str
    command: str
    argument: str | None
    responder: Responder
    display_name: str | None = None
    handle: str | None = None
    is_callback: bool = False


Handler = Callable[[Account, str | None, Invocation], Awaitable[Outcome]]
Validator = Callable[[str], str]


@dataclass
class CommandSpec:
    name: str
    handler: Handler
    requires_approval: bool = True
    cost: int | None = None
    usage: str | None = None
    default_argument: str | None = None
    validator: Validator | None = None
    admin_only: bool = False

    def __post_init__(self) -> None:
        if self.cost is None:
            self.cost = int(COMMAND_COSTS.get(self.name, ToolTier.FREE))

    @property
    def counts_query(self) -> bool:
        return self.cost > 0

    def resolve_argument(self, raw: str | None) -> str | None:
        """Apply the default and validator. Raises ValidationError with the usage text."""
        argument = (raw or "").strip() or self.default_argument
        if argument is None:
            if self.usage is not None:
                raise ValidationError(self.usage)
            return None
        if self.validator is not None:
            return self.validator(argument)
        return argument


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class Dispatcher:
    """Routes invocations to their ``CommandSpec`` through the admission gate."""

    def __init__(
        self,
        store: AccountStore,
        gate: AdmissionGate,
        refund_premium_failures: bool = True,
    ) -> None:
        self.store = store
        self.gate = gate
        self.refund_premium_failures = refund_premium_failures
        self._commands: dict[str, CommandSpec] = {}

    def register(self, spec: CommandSpec) -> None:
        if spec.name in self._commands:
            raise ValueError(f"Command already registered: {spec.name}")
        self._commands[spec.name] = spec

    def register_all(self, specs: Iterable[CommandSpec]) -> None:
        for spec in specs:
            self.register(spec)

    def get(self, name: str) -> CommandSpec | None:
        return self._commands.get(name)

    @property
    def command_names(self) -> list[str]:
        return list(self._commands)

    async def execute(self, invocation: Invocation) -> Outcome | Blocked | None:
        """Run one invocation end to end and send its reply.

        Returns the settled outcome, ``Blocked`` when a check or the handler
        raised a ``BotError``, or None for an unknown command.
        """
        spec = self._commands.get(invocation.command)
        if spec is None:
            await self._respond(invocation, get_message("unknown_command"))
            return None

        account = self.store.get_or_create(
            invocation.actor_id,
            display_name=invocation.display_name,
            handle=invocation.handle,
        )
        async with self.store.lock(account.id):
            try:
                return await self._run(spec, account, invocation)
            except BotError as e:
                await self._respond(invocation, e.message, e.buttons)
                return Blocked(e)

    async def _run(self, spec: CommandSpec, account: Account, invocation: Invocation) -> Outcome | Blocked:
        await self.gate.screen(account, spec.name, spec.requires_approval)
        if spec.admin_only and not account.is_admin:
            raise AuthorizationError(get_message("admin_only"))
        argument = spec.resolve_argument(invocation.argument)
        refund_owed = self.gate.charge(account, spec.cost)

        try:
            outcome = await spec.handler(account, argument, invocation)
        except BotError as e:
            # Handler-level refusals (not found, bad input) settle like a soft failure
            self._settle_refund(account, spec, refund_owed)
            await self._respond(invocation, e.message, e.buttons)
            return Blocked(e)
        except CollaboratorFailure as e:
            logger.warning("Collaborator failure in /%s for %s: %s", spec.name, account.id, e)
            outcome = SoftFailure(get_message("collaborator_failure"))
        except Exception as e:
            logger.exception("Command /%s failed for %s.", spec.name, account.id)
            outcome = HardFailure(e)

        if isinstance(outcome, Success):
            # The query only counts once its result reached the user
            if outcome.text and not await self._respond(invocation, outcome.text, outcome.buttons):
                outcome = SoftFailure(get_message("delivery_failed"))
            else:
                if spec.counts_query:
                    account.total_queries += 1
                self.store.upsert(account)
                return outcome

        refunded = self._settle_refund(account, spec, refund_owed)
        if isinstance(outcome, SoftFailure):
            text = outcome.reason
        else:
            text = get_message("unexpected_failure")
        if refunded:
            text = f"{text}\n\n{get_message('refund_note', cost=spec.cost)}"
        await self._respond(invocation, text)
        return outcome

    def _settle_refund(self, account: Account, spec: CommandSpec, refund_owed: bool) -> bool:
        if not refund_owed:
            return False
        if account.is_premium and not self.refund_premium_failures:
            return False
        ledger.refund(account, spec.cost)
        self.store.upsert(account)
        return True

    async def _respond(self, invocation: Invocation, text: str, buttons: Buttons | None = None) -> bool:
        """Send ``text`` back to the invoker. Delivery errors are logged, never raised."""
        try:
            if invocation.is_callback:
                await invocation.responder.edit(text, buttons)
            else:
                await invocation.responder.reply(text, buttons)
        except Exception:
            logger.warning(
                "Reply to /%s for %s could not be delivered.",
                invocation.command, invocation.actor_id, exc_info=True,
            )
            return False
        return True
