"""Assemble the core services from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lookupbot.accounts import ProcessState
from lookupbot.admin import AdminControlSurface
from lookupbot.api.client import LookupAPI
from lookupbot.config import Settings
from lookupbot.dispatcher import Dispatcher
from lookupbot.gate import AdmissionGate
from lookupbot.membership import MembershipCheck, MembershipGate
from lookupbot.registration import (
    AdminApprovalPolicy,
    ChannelAutoApprovalPolicy,
    RegistrationPipeline,
    RegistrationPolicy,
)
from lookupbot.store import AccountStore, InMemoryAccountStore, bootstrap_admin
from lookupbot.tools.account import account_commands
from lookupbot.tools.admin_commands import admin_commands
from lookupbot.tools.lookups import lookup_commands
from lookupbot.tools.media import media_commands
from lookupbot.tools.menu import PendingInputs, menu_commands
from lookupbot.tools.utility import utility_commands
from lookupbot.transport import Notifier

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    store: AccountStore
    state: ProcessState
    membership: MembershipGate | None
    registrations: RegistrationPipeline
    gate: AdmissionGate
    admin: AdminControlSurface
    api: LookupAPI
    dispatcher: Dispatcher
    pending: PendingInputs


def build_api(settings: Settings) -> LookupAPI:
    return LookupAPI(
        endpoints=settings.lookup_endpoints,
        downloader_base_url=settings.downloader_base_url,
        terabox_api_url=settings.terabox_api_url,
        terabox_api_key=settings.terabox_api_key,
        timeout=settings.request_timeout_secs,
        probe_timeout=settings.probe_timeout_secs,
        user_agent=settings.user_agent,
    )


def build_services(
    settings: Settings,
    notifier: Notifier,
    membership_check: MembershipCheck | None = None,
    api: LookupAPI | None = None,
    store: AccountStore | None = None,
) -> Services:
    """Wire store, gate, registration, admin surface and the command table.

    The membership gate is only installed when a channel is configured and a
    ``membership_check`` is supplied. The configured admin is provisioned.
    """
    store = store if store is not None else InMemoryAccountStore()
    state = ProcessState(maintenance_message=settings.maintenance_message)

    membership = None
    if settings.membership_gate_enabled and membership_check is not None:
        membership = MembershipGate(
            membership_check,
            channel_url=settings.channel_url,
            recheck_delay_secs=settings.membership_check_delay_secs,
        )

    policy: RegistrationPolicy
    if settings.registration_strategy == "channel_auto":
        if membership is None:
            raise ValueError("channel_auto registration requires CHANNEL_ID to be set")
        policy = ChannelAutoApprovalPolicy(membership)
    else:
        policy = AdminApprovalPolicy()

    registrations = RegistrationPipeline(store, notifier, policy, settings.starting_credits)
    gate = AdmissionGate(state, membership)
    admin = AdminControlSurface(
        store,
        state,
        registrations,
        notifier,
        membership=membership,
        default_maintenance_message=settings.maintenance_message,
    )
    api = api if api is not None else build_api(settings)

    dispatcher = Dispatcher(store, gate, settings.refund_premium_failures)
    dispatcher.register_all(
        account_commands(store, registrations, membership, settings.admin_user_id)
    )
    dispatcher.register_all(lookup_commands(api))
    dispatcher.register_all(media_commands(api, settings.media_send_delay_secs))
    dispatcher.register_all(utility_commands(api))
    pending = PendingInputs()
    dispatcher.register_all(menu_commands(pending))
    dispatcher.register_all(admin_commands(admin))

    bootstrap_admin(store, settings.admin_user_id)
    logger.info(
        "Services ready: %d commands, registration=%s, membership gate %s.",
        len(dispatcher.command_names),
        settings.registration_strategy,
        "on" if membership else "off",
    )
    return Services(
        settings=settings,
        store=store,
        state=state,
        membership=membership,
        registrations=registrations,
        gate=gate,
        admin=admin,
        api=api,
        dispatcher=dispatcher,
        pending=pending,
    )
