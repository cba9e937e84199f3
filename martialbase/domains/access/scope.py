# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Resource-scope access evaluation.

A single evaluator decides organisation, school and person level access
from membership rows. The superuser bypass is applied by the pipeline
before evaluation, so nothing here looks at the superuser role.

Outcomes by requirement kind:

- OrganisationMember: membership row or public organisation grants;
  otherwise NoOrganisationAccess.
- OrganisationAdmin: no row gives NoOrganisationAccess, a non-admin row
  gives NotOrganisationAdmin. The public flag is ignored.
- SchoolSecretary: only an active secretary row grants; every other case,
  including not being a member at all, gives NotSchoolSecretary.
- SchoolMember: an active row grants; otherwise NotSchoolStudent.
- Person: the person themselves, a secretary of one of their schools or
  an admin of one of their organisations; otherwise NoAccessToPerson.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from martialbase.domains.access.errors import (
    ErrorCodeFailure,
    ErrorResponseCode,
    GRANTED,
    Granted,
    ScopeFailure,
    insufficient_user_role,
)
from martialbase.domains.access.identity import ResolvedIdentity
from martialbase.domains.access.roles import ScopeKind, roles_for_scope
from martialbase.domains.access.store import AccessStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScopeRequirement:
    """Relationship an operation requires between caller and a target resource.

    Attributes:
        kind: Required relationship.
        target_id: Organisation, school or person id the relationship is with.
    """

    kind: ScopeKind
    target_id: str

    @classmethod
    def organisation_member(cls, organisation_id: str) -> "ScopeRequirement":
        return cls(ScopeKind.ORGANISATION_MEMBER, organisation_id)

    @classmethod
    def organisation_admin(cls, organisation_id: str) -> "ScopeRequirement":
        return cls(ScopeKind.ORGANISATION_ADMIN, organisation_id)

    @classmethod
    def school_secretary(cls, school_id: str) -> "ScopeRequirement":
        return cls(ScopeKind.SCHOOL_SECRETARY, school_id)

    @classmethod
    def school_member(cls, school_id: str) -> "ScopeRequirement":
        return cls(ScopeKind.SCHOOL_MEMBER, school_id)

    @classmethod
    def person(cls, person_id: str) -> "ScopeRequirement":
        return cls(ScopeKind.PERSON, person_id)


ScopeResult = Granted | ScopeFailure | ErrorCodeFailure


class ScopeEvaluator:
    """Evaluates a ScopeRequirement for a resolved caller.

    Attributes:
        _store: Membership query contract.
    """

    def __init__(self, store: AccessStore) -> None:
        self._store = store

    async def evaluate(self, identity: ResolvedIdentity, requirement: ScopeRequirement) -> ScopeResult:
        """Decide whether the caller holds the required relationship.

        Args:
            identity: Registered caller.
            requirement: Required relationship and its target.

        Returns:
            GRANTED or the failure for the first unmet condition.
        """
        if requirement.kind is ScopeKind.ORGANISATION_MEMBER:
            result = await self._organisation_member(identity.person_id, requirement.target_id)
        elif requirement.kind is ScopeKind.ORGANISATION_ADMIN:
            result = await self._organisation_admin(identity.person_id, requirement.target_id)
        elif requirement.kind is ScopeKind.SCHOOL_SECRETARY:
            result = await self._school_secretary(identity.person_id, requirement.target_id)
        elif requirement.kind is ScopeKind.SCHOOL_MEMBER:
            result = await self._school_member(identity.person_id, requirement.target_id)
        elif requirement.kind is ScopeKind.PERSON:
            result = await self._person(identity, requirement.target_id)
        else:
            raise ValueError(f"Unsupported scope kind: {requirement.kind}")

        if not isinstance(result, Granted):
            logger.debug(
                "Scope %s on %s refused for person %s: %s",
                requirement.kind.value,
                requirement.target_id,
                identity.person_id,
                result,
            )
        return result

    async def can_see_organisation(self, identity: ResolvedIdentity, organisation_id: str) -> bool:
        """Check member-level visibility of an organisation without failing."""
        result = await self._organisation_member(identity.person_id, organisation_id)
        return isinstance(result, Granted)

    async def filter_visible_organisations(
        self,
        identity: ResolvedIdentity,
        organisation_ids: Iterable[str],
        bypass: bool = False,
    ) -> list[str]:
        """Keep only the organisations the caller may read.

        Args:
            identity: Registered caller.
            organisation_ids: Candidate organisation ids, order preserved.
            bypass: Keep everything (superuser callers).

        Returns:
            Visible organisation ids.
        """
        candidates = list(organisation_ids)
        if bypass:
            return candidates
        return [
            organisation_id
            for organisation_id in candidates
            if await self.can_see_organisation(identity, organisation_id)
        ]

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _organisation_member(self, person_id: str, organisation_id: str) -> ScopeResult:
        membership = await self._store.get_organisation_membership(organisation_id, person_id)
        if membership is not None:
            return GRANTED
        if await self._store.is_organisation_public(organisation_id):
            return GRANTED
        return ScopeFailure(ErrorResponseCode.NO_ORGANISATION_ACCESS)

    async def _organisation_admin(self, person_id: str, organisation_id: str) -> ScopeResult:
        membership = await self._store.get_organisation_membership(organisation_id, person_id)
        if membership is None:
            return ScopeFailure(ErrorResponseCode.NO_ORGANISATION_ACCESS)
        if not membership.is_admin:
            return ScopeFailure(ErrorResponseCode.NOT_ORGANISATION_ADMIN)
        return GRANTED

    async def _school_secretary(self, person_id: str, school_id: str) -> ScopeResult:
        membership = await self._store.get_school_membership(school_id, person_id)
        if membership is None or not membership.is_secretary or membership.inactive_date is not None:
            return ScopeFailure(ErrorResponseCode.NOT_SCHOOL_SECRETARY)
        return GRANTED

    async def _school_member(self, person_id: str, school_id: str) -> ScopeResult:
        membership = await self._store.get_school_membership(school_id, person_id)
        if membership is None or membership.inactive_date is not None:
            return ScopeFailure(ErrorResponseCode.NOT_SCHOOL_STUDENT)
        return GRANTED

    async def _person(self, identity: ResolvedIdentity, person_id: str) -> ScopeResult:
        if identity.person_id == person_id:
            return GRANTED

        if not identity.roles & roles_for_scope(ScopeKind.PERSON):
            return insufficient_user_role()

        for school in await self._store.list_school_memberships(person_id):
            if isinstance(await self._school_secretary(identity.person_id, school.school_id), Granted):
                return GRANTED

        for organisation in await self._store.list_organisation_memberships(person_id):
            if isinstance(await self._organisation_admin(identity.person_id, organisation.organisation_id), Granted):
                return GRANTED

        return ScopeFailure(ErrorResponseCode.NO_ACCESS_TO_PERSON)
