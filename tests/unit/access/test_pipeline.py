# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for PipelineCoordinator.

Each test runs an operation against the in-memory store and checks which
stage stopped it and what happened to the unit of work.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from martialbase.domains.access import (
    EntityKind,
    EntityReference,
    EntityRelationNotFound,
    ErrorResponseCode,
    Operation,
    OrphanPersonEntityError,
    QueryParameter,
    ScopeKind,
    ScopeRequirement,
    Success,
    UserRoles,
    roles_for_scope,
)
from martialbase.models.art_grade import ArtGradeCreateRequest

ADMIN_ROLES = roles_for_scope(ScopeKind.ORGANISATION_ADMIN)

VALID_GRADE = {"artId": "a", "organisationId": "o", "gradeLevel": 1, "description": "White"}


@pytest.fixture
def handler() -> AsyncMock:
    return AsyncMock(return_value=Success({"ok": True}))


def admin_operation(organisation_id: str, **kwargs) -> Operation:
    return Operation(
        name="test.admin",
        required_roles=ADMIN_ROLES,
        references=(EntityReference(EntityKind.ORGANISATION, organisation_id),),
        scopes=(ScopeRequirement.organisation_admin(organisation_id),),
        **kwargs,
    )


class TestStructureStage:
    """Tests for parameter, payload and subject checks."""

    @pytest.mark.asyncio
    async def test_bad_parameter_before_everything(self, coordinator, handler) -> None:
        operation = Operation(
            name="test",
            parameters=(QueryParameter("personId", label="person ID", required=True),),
            payload_model=ArtGradeCreateRequest,
        )

        response = await coordinator.run(operation, None, handler, payload=None)

        assert response.status_code == 400
        assert response.body == "No person ID parameter specified."
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_payload_errors_before_subject(self, coordinator, handler) -> None:
        operation = Operation(name="test", payload_model=ArtGradeCreateRequest)

        response = await coordinator.run(operation, None, handler, payload={"description": ""})

        assert response.status_code == 500
        assert set(response.body) == {"ArtId", "OrganisationId", "GradeLevel", "Description"}

    @pytest.mark.asyncio
    async def test_missing_subject_is_401(self, coordinator, handler) -> None:
        response = await coordinator.run(Operation(name="test"), {"sub": "x"}, handler)

        assert response.status_code == 401
        assert response.body == "Auth token does not contain a valid user ID."

    @pytest.mark.asyncio
    async def test_missing_subject_before_existence(self, store, coordinator, handler) -> None:
        operation = Operation(
            name="test",
            references=(EntityReference(EntityKind.ORGANISATION, "missing"),),
        )

        response = await coordinator.run(operation, None, handler)

        assert response.status_code == 401
        assert store.calls["exists:ORGANISATION"] == 0


class TestExistenceStage:
    """Tests for entity existence checks."""

    @pytest.mark.asyncio
    async def test_first_missing_reference_wins(self, store, coordinator, handler, claims_for) -> None:
        user = store.add_user()
        operation = Operation(
            name="test",
            references=(
                EntityReference(EntityKind.ART, "missing-art"),
                EntityReference(EntityKind.ORGANISATION, "missing-org"),
            ),
        )

        response = await coordinator.run(operation, claims_for(user), handler)

        assert response.status_code == 404
        assert response.body == "Art ID 'missing-art' not found."
        assert store.calls["exists:ORGANISATION"] == 0

    @pytest.mark.asyncio
    async def test_existence_before_identity(self, store, coordinator, handler) -> None:
        operation = Operation(
            name="test",
            references=(EntityReference(EntityKind.ORGANISATION, "missing"),),
        )

        response = await coordinator.run(operation, {"oid": "unregistered"}, handler)

        assert response.status_code == 404
        assert store.calls["find_user_by_external_subject"] == 0

    @pytest.mark.asyncio
    async def test_reference_from_payload(self, store, coordinator, handler, claims_for) -> None:
        user = store.add_user()
        operation = Operation(
            name="test",
            payload_model=ArtGradeCreateRequest,
            references=(EntityReference(EntityKind.ART, lambda context: context.payload.art_id),),
        )

        response = await coordinator.run(operation, claims_for(user), handler, payload=VALID_GRADE)

        assert response.body == "Art ID 'a' not found."

    @pytest.mark.asyncio
    async def test_none_reference_is_skipped(self, store, coordinator, handler, claims_for) -> None:
        user = store.add_user()
        operation = Operation(
            name="test",
            references=(EntityReference(EntityKind.ORGANISATION, lambda context: None),),
        )

        response = await coordinator.run(operation, claims_for(user), handler)

        assert response.status_code == 200


class TestAuthorizationStages:
    """Tests for identity, capability and scope stages."""

    @pytest.mark.asyncio
    async def test_unregistered_subject(self, store, coordinator, handler) -> None:
        response = await coordinator.run(Operation(name="test"), {"oid": "nobody"}, handler)

        assert response.status_code == 403
        assert response.body == "AzureUserNotRegistered"
        assert response.error_code is ErrorResponseCode.AZURE_USER_NOT_REGISTERED

    @pytest.mark.asyncio
    async def test_insufficient_role(self, store, coordinator, handler, claims_for) -> None:
        user = store.add_user(roles={UserRoles.USER})
        organisation_id = store.add_organisation()

        response = await coordinator.run(admin_operation(organisation_id), claims_for(user), handler)

        assert response.status_code == 403
        assert response.body == "InsufficientUserRole"
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_scope_failure(self, store, coordinator, handler, claims_for) -> None:
        user = store.add_user(roles={UserRoles.ORGANISATION_ADMIN})
        organisation_id = store.add_organisation()
        store.add_organisation_member(organisation_id, user.person_id, is_admin=False)

        response = await coordinator.run(admin_operation(organisation_id), claims_for(user), handler)

        assert response.status_code == 403
        assert response.body == "NotOrganisationAdmin"

    @pytest.mark.asyncio
    async def test_scope_granted(self, store, coordinator, handler, claims_for) -> None:
        user = store.add_user(roles={UserRoles.ORGANISATION_ADMIN})
        organisation_id = store.add_organisation()
        store.add_organisation_member(organisation_id, user.person_id, is_admin=True)

        response = await coordinator.run(admin_operation(organisation_id), claims_for(user), handler)

        assert response.status_code == 200
        assert response.body == {"ok": True}
        context = handler.await_args.args[0]
        assert context.person_id == user.person_id
        assert context.superuser is False

    @pytest.mark.asyncio
    async def test_superuser_skips_roles_and_scopes(self, store, coordinator, handler, claims_for) -> None:
        user = store.add_user(roles={UserRoles.SUPERUSER})
        organisation_id = store.add_organisation()

        response = await coordinator.run(admin_operation(organisation_id), claims_for(user), handler)

        assert response.status_code == 200
        assert handler.await_args.args[0].superuser is True
        assert store.calls["get_organisation_membership"] == 0

    @pytest.mark.asyncio
    async def test_lazy_scope_runs_after_existence(self, store, coordinator, handler, claims_for) -> None:
        user = store.add_user(roles={UserRoles.ORGANISATION_ADMIN})
        organisation_id = store.add_organisation()
        lazy = AsyncMock(return_value=ScopeRequirement.organisation_admin(organisation_id))
        operation = Operation(
            name="test",
            required_roles=ADMIN_ROLES,
            references=(EntityReference(EntityKind.ORGANISATION, "missing"),),
            scopes=(lazy,),
        )

        response = await coordinator.run(operation, claims_for(user), handler)

        assert response.status_code == 404
        lazy.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lazy_scope_returning_none_is_skipped(self, store, coordinator, handler, claims_for) -> None:
        user = store.add_user(roles={UserRoles.ORGANISATION_ADMIN})
        operation = Operation(
            name="test",
            required_roles=ADMIN_ROLES,
            scopes=(AsyncMock(return_value=None),),
        )

        response = await coordinator.run(operation, claims_for(user), handler)

        assert response.status_code == 200


class TestBusinessAndCommitStages:
    """Tests for business operation outcomes and the unit of work."""

    @pytest.mark.asyncio
    async def test_read_only_operation_never_commits(
        self, store, coordinator, unit_of_work, handler, claims_for
    ) -> None:
        user = store.add_user()

        response = await coordinator.run(Operation(name="test"), claims_for(user), handler)

        assert response.committed is False
        unit_of_work.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mutation_commits_once(self, store, coordinator, unit_of_work, claims_for) -> None:
        user = store.add_user()
        handler = AsyncMock(return_value=Success(status_code=204))

        response = await coordinator.run(Operation(name="test", mutates=True), claims_for(user), handler)

        assert response.status_code == 204
        assert response.committed is True
        unit_of_work.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_check_never_commits(self, store, coordinator, unit_of_work, handler) -> None:
        response = await coordinator.run(Operation(name="test", mutates=True), {"oid": "nobody"}, handler)

        assert response.status_code == 403
        unit_of_work.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_business_failure_rolls_back(self, store, coordinator, unit_of_work, claims_for) -> None:
        user = store.add_user()
        handler = AsyncMock(return_value=EntityRelationNotFound("Person", "p", "organisation", "o"))

        response = await coordinator.run(Operation(name="test", mutates=True), claims_for(user), handler)

        assert response.status_code == 404
        assert response.body == "Person 'p' not found in organisation 'o'"
        unit_of_work.rollback.assert_awaited_once()
        unit_of_work.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_orphan_error_rolls_back_and_propagates(
        self, store, coordinator, unit_of_work, claims_for
    ) -> None:
        user = store.add_user()
        handler = AsyncMock(side_effect=OrphanPersonEntityError())

        with pytest.raises(OrphanPersonEntityError):
            await coordinator.run(Operation(name="test", mutates=True), claims_for(user), handler)

        unit_of_work.rollback.assert_awaited_once()
        unit_of_work.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commit_failure_is_500(self, store, coordinator, unit_of_work, handler, claims_for) -> None:
        user = store.add_user()
        unit_of_work.commit.side_effect = OperationalError("COMMIT", {}, Exception("gone"))

        response = await coordinator.run(Operation(name="test", mutates=True), claims_for(user), handler)

        assert response.status_code == 500
        assert response.body == "Failed to save changes to database context."
        assert response.committed is False
        unit_of_work.rollback.assert_awaited_once()
