"""API key grants, admin credential and the authorizer."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from opencdn.errors import InvalidCredential, MissingCredential
from opencdn.utils.storage import BYTES_PER_MB

if TYPE_CHECKING:
    from opencdn.config import Settings

logger = logging.getLogger(__name__)

TIERS = ("small", "medium", "large")


@dataclass(frozen=True)
class Quota:
    """Maximum upload size. ``limit=None`` is the unlimited variant."""

    limit: int | None = None

    @property
    def is_unlimited(self) -> bool:
        return self.limit is None

    def allows(self, size: int) -> bool:
        return self.limit is None or size <= self.limit

    def exceeds(self, size: int) -> bool:
        return not self.allows(size)

    def describe_mb(self) -> str:
        """Human quota in whole MB, e.g. ``"5"`` or ``"unlimited"``."""
        if self.limit is None:
            return "unlimited"
        return f"{self.limit / BYTES_PER_MB:.0f}"

    @classmethod
    def from_mb(cls, megabytes: int | None) -> "Quota":
        if megabytes is None:
            return UNLIMITED
        return cls(limit=megabytes * BYTES_PER_MB)


UNLIMITED = Quota(limit=None)


@dataclass(frozen=True)
class ApiKeyGrant:
    tier: str
    key: str
    quota: Quota
    label: str

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks
        return f"ApiKeyGrant(tier={self.tier!r}, quota={self.quota!r}, label={self.label!r})"


@dataclass(frozen=True)
class AdminCredential:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"AdminCredential(username={self.username!r})"


class CredentialStore:
    """Immutable set of grants plus the admin login, loaded once at startup."""

    def __init__(self, grants: list[ApiKeyGrant], admin: AdminCredential):
        keys = [g.key for g in grants]
        if any(not k for k in keys):
            raise ValueError("Every API key tier needs a non-empty key")
        if len(set(keys)) != len(keys):
            raise ValueError("API keys must be distinct across tiers")
        self._grants = tuple(grants)
        self._admin = admin

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialStore":
        grants = [
            ApiKeyGrant(
                tier=tier,
                key=getattr(settings, f"{tier}_key"),
                quota=Quota.from_mb(getattr(settings, f"{tier}_max_size_mb")),
                label=getattr(settings, f"{tier}_label"),
            )
            for tier in TIERS
        ]
        admin = AdminCredential(settings.admin_username, settings.admin_password)
        return cls(grants, admin)

    @property
    def grants(self) -> tuple[ApiKeyGrant, ...]:
        return self._grants

    def __iter__(self) -> Iterator[ApiKeyGrant]:
        return iter(self._grants)

    def authorize(self, presented_key: str | None) -> ApiKeyGrant:
        """Return the grant whose key exactly matches ``presented_key``."""
        if not presented_key:
            raise MissingCredential()

        presented = presented_key.encode()
        match: ApiKeyGrant | None = None
        # Compare against every key so timing does not reveal which tier matched
        for grant in self._grants:
            if hmac.compare_digest(presented, grant.key.encode()):
                match = grant
        if match is None:
            logger.warning("Rejected request with unrecognized API key")
            raise InvalidCredential()
        return match

    def check_admin(self, username: str, password: str) -> bool:
        user_ok = hmac.compare_digest(username.encode(), self._admin.username.encode())
        pass_ok = hmac.compare_digest(password.encode(), self._admin.password.encode())
        return user_ok and pass_ok

    def labels(self) -> dict[str, str]:
        return {g.tier: g.label for g in self._grants}

    def suggest_upgrade(self, grant: ApiKeyGrant) -> str:
        """Remediation text naming the tiers that would accept a larger file."""
        larger = [
            g for g in self._grants
            if g.tier != grant.tier
            and (g.quota.is_unlimited or (not grant.quota.is_unlimited and g.quota.limit > grant.quota.limit))
        ]
        if not larger:
            return f"No API key allows larger files than {grant.label}."
        names = " or ".join(f"the {g.label} API key" for g in larger)
        return f"Please use {names}."
