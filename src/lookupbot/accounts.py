"""Account, registration request and process-wide state records.

Pure data model, no I/O. Everything here lives in process memory only; a
restart resets all of it except the bootstrap admin, which is re-provisioned
on startup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from lookupbot.utils.constants import DEFAULT_MAINTENANCE_MESSAGE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


@dataclass
class Account:
    """Per-identity entitlements and usage.

    ``credits`` only goes down through ``ledger.try_debit`` and admin
    removals, both of which refuse to cross zero.
    """

    id: str
    display_name: str | None = None
    handle: str | None = None
    approved: bool = False
    credits: int = 0
    is_premium: bool = False
    is_admin: bool = False
    total_queries: int = 0
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def mention(self) -> str:
        """Human-readable label: @handle, display name, or the raw id."""
        if self.handle:
            return f"@{self.handle}"
        return self.display_name or self.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "handle": self.handle,
            "approved": self.approved,
            "credits": self.credits,
            "is_premium": self.is_premium,
            "is_admin": self.is_admin,
            "total_queries": self.total_queries,
            "created_at": self.created_at.isoformat(),
        }


# ---------------------------------------------------------------------------
# RegistrationRequest
# ---------------------------------------------------------------------------


@dataclass
class RegistrationRequest:
    """A pending registration. Resolved requests are deleted, not archived."""

    id: str
    display_name: str | None = None
    handle: str | None = None
    submitted_at: datetime = field(default_factory=_utcnow)
    status: str = "pending"

    @property
    def mention(self) -> str:
        if self.handle:
            return f"@{self.handle}"
        return self.display_name or self.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "handle": self.handle,
            "submitted_at": self.submitted_at.isoformat(),
            "status": self.status,
        }


# ---------------------------------------------------------------------------
# ProcessState
# ---------------------------------------------------------------------------


@dataclass
class ProcessState:
    """Process-wide flags, mutated only through the admin surface."""

    maintenance_mode: bool = False
    maintenance_message: str = DEFAULT_MAINTENANCE_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "maintenance_mode": self.maintenance_mode,
            "maintenance_message": self.maintenance_message,
        }
