# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Guard for the rule that every person keeps at least one organisation.

The guard must run inside the unit of work that performs the removal.
It counts memberships with a row lock, so a concurrent removal for the
same person waits until this transaction commits or rolls back and then
sees the reduced count.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from martialbase.domains.access.errors import OrphanPersonEntityError
from martialbase.domains.access.store import AccessStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allowed:
    """The removal keeps the person in at least one organisation."""

    remaining: int


@dataclass(frozen=True)
class Rejected:
    """The removal would leave the person in no organisation."""

    person_id: str
    organisation_id: str


class OrphanGuard:
    """Vetoes organisation membership removals that would orphan a person.

    Example:
        >>> guard = OrphanGuard(store)
        >>> await guard.before_remove_membership(person_id, organisation_id)
        Allowed(remaining=1)
    """

    def __init__(self, store: AccessStore) -> None:
        self._store = store

    async def assess(self, person_id: str, organisation_id: str) -> Allowed | Rejected:
        """Decide whether one membership of a person may be removed.

        Args:
            person_id: Person losing the membership.
            organisation_id: Organisation the membership belongs to.

        Returns:
            Allowed with the number of memberships left after removal,
            or Rejected when exactly one membership exists.
        """
        count = await self._store.count_organisation_memberships(person_id, lock=True)
        if count == 1:
            return Rejected(person_id=person_id, organisation_id=organisation_id)
        return Allowed(remaining=max(count - 1, 0))

    async def before_remove_membership(self, person_id: str, organisation_id: str) -> Allowed:
        """Check a removal and raise if it would orphan the person.

        Raises:
            OrphanPersonEntityError: If this is the person's only membership.
        """
        decision = await self.assess(person_id, organisation_id)
        if isinstance(decision, Rejected):
            logger.info(
                "Refused removing person %s from organisation %s: last membership",
                person_id,
                organisation_id,
            )
            raise OrphanPersonEntityError()
        return decision

    async def before_remove_organisation(self, organisation_id: str, person_ids: Iterable[str]) -> None:
        """Check that deleting an organisation orphans none of its members.

        Raises:
            OrphanPersonEntityError: If any member belongs to no other organisation.
        """
        for person_id in person_ids:
            await self.before_remove_membership(person_id, organisation_id)
