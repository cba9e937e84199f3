# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Resolution of verified token claims to an internal user identity.

Token signature and expiry are checked by the transport layer before the
claims reach this module. The resolver only interprets the subject and
invitation claims.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from martialbase.domains.access.errors import IdentityFailure, NoSubject, NotRegistered
from martialbase.domains.access.store import AccessStore, UserRecord

logger = logging.getLogger(__name__)

# Links a pending account to the subject presenting its invitation code
InvitationHandler = Callable[[UserRecord, str], Awaitable[UserRecord]]


@dataclass(frozen=True)
class ResolvedIdentity:
    """Registered caller of an operation.

    Attributes:
        user_id: Internal user account id.
        person_id: Person record linked to the account.
        roles: Role names held by the account.
    """

    user_id: str
    person_id: str
    roles: frozenset[str]


def extract_subject(claims: Mapping[str, Any] | None, subject_claim: str) -> str | None:
    """Read the subject claim from verified token claims.

    Args:
        claims: Verified claims, or None when no credential was supplied.
        subject_claim: Name of the claim carrying the subject.

    Returns:
        The stripped subject, or None if the claim is absent or blank.
    """
    if not claims:
        return None
    value = claims.get(subject_claim)
    if value is None:
        return None
    subject = str(value).strip()
    return subject or None


class IdentityResolver:
    """Turns token claims into a ResolvedIdentity or an IdentityFailure.

    Example:
        >>> resolver = IdentityResolver(store, subject_claim="oid")
        >>> result = await resolver.resolve({"oid": "6f1c..."})
        >>> isinstance(result, ResolvedIdentity)
        True
    """

    def __init__(
        self,
        store: AccessStore,
        subject_claim: str = "oid",
        invitation_claim: str = "extension_InvitationCode",
        invitation_handler: InvitationHandler | None = None,
    ) -> None:
        self._store = store
        self._subject_claim = subject_claim
        self._invitation_claim = invitation_claim
        self._invitation_handler = invitation_handler

    def subject_of(self, claims: Mapping[str, Any] | None) -> str | None:
        """Get the subject carried by the claims, if any."""
        return extract_subject(claims, self._subject_claim)

    async def resolve(self, claims: Mapping[str, Any] | None) -> ResolvedIdentity | IdentityFailure:
        """Resolve claims to a registered user.

        Args:
            claims: Verified token claims.

        Returns:
            ResolvedIdentity, NoSubject when the subject claim is missing,
            or NotRegistered when no active account matches.
        """
        subject = self.subject_of(claims)
        if subject is None:
            return NoSubject()

        user = await self._store.find_user_by_external_subject(subject)

        if user is None:
            user = await self._claim_invitation(claims, subject)

        if user is None or user.external_subject is None:
            logger.debug("Subject %s is not linked to an active user", subject)
            return NotRegistered()

        return ResolvedIdentity(
            user_id=user.id,
            person_id=user.person_id,
            roles=frozenset(user.roles),
        )

    async def _claim_invitation(self, claims: Mapping[str, Any] | None, subject: str) -> UserRecord | None:
        if self._invitation_handler is None or not claims:
            return None

        code = claims.get(self._invitation_claim)
        if not code or not str(code).strip():
            return None

        pending = await self._store.find_user_by_invitation_code(str(code).strip())
        if pending is None or pending.external_subject is not None:
            logger.debug("Invitation code from subject %s matches no pending user", subject)
            return None

        user = await self._invitation_handler(pending, subject)
        logger.info("Subject %s registered through invitation code as user %s", subject, user.id)
        return user
