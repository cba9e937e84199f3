# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the v1 API running through the access pipeline.

The routers, dependencies, auth middleware and exception handlers are
real; the coordinator and access store are replaced with in-memory
versions and the database session with a mock.
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from martialbase.api.app import orphan_entity_handler
from martialbase.api.dependencies import get_access_store, get_coordinator, get_db
from martialbase.api.middleware import AuthMiddleware
from martialbase.api.v1 import router as v1_router
from martialbase.core.config.settings import AuthSettings
from martialbase.domains.access import OrphanEntityError, PipelineCoordinator, UserRecord, UserRoles
from martialbase.domains.auth.jwt import TokenVerifier
from martialbase.domains.organisation.service import CYCLIC_PARENT_MESSAGE
from martialbase.models.organisation import OrganisationResponse

SECRET = "test-secret-key-for-jwt-testing"


@pytest.fixture
def db() -> MagicMock:
    """Create a mock database session."""
    session = MagicMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture
def client(store, coordinator: PipelineCoordinator, db: MagicMock) -> TestClient:
    """Create a client for an app serving the v1 routers."""
    app = FastAPI(redirect_slashes=False)
    app.add_exception_handler(OrphanEntityError, orphan_entity_handler)
    app.add_middleware(AuthMiddleware, verifier=TokenVerifier(AuthSettings(secret_key=SECRET)))  # type: ignore[arg-type]
    app.include_router(v1_router)

    async def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_access_store] = lambda: store
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    return TestClient(app)


@pytest.fixture
def auth_headers(claims_for):
    """Build an Authorization header carrying a user's claims."""

    def build(user: UserRecord) -> dict[str, str]:
        claims: dict[str, Any] = claims_for(user)
        return {"Authorization": f"Bearer {jwt.encode(claims, SECRET, algorithm='HS256')}"}

    return build


class TestGetMyId:
    def test_returns_person_id(self, client: TestClient, store, auth_headers) -> None:
        user = store.add_user()

        response = client.get("/api/v1/people/getmyid", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.text == user.person_id

    def test_without_token(self, client: TestClient) -> None:
        response = client.get("/api/v1/people/getmyid")

        assert response.status_code == 401
        assert response.text == "Auth token does not contain a valid user ID."

    def test_unregistered_subject(self, client: TestClient) -> None:
        token = jwt.encode({"oid": "nobody"}, SECRET, algorithm="HS256")

        response = client.get("/api/v1/people/getmyid", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.text == "AzureUserNotRegistered"


class TestPersonAccess:
    def test_unknown_person(self, client: TestClient, store, auth_headers) -> None:
        user = store.add_user()
        missing = str(uuid4())

        response = client.get(f"/api/v1/people/{missing}", headers=auth_headers(user))

        assert response.status_code == 404
        assert response.text == f"Person ID '{missing}' not found."

    def test_plain_user_cannot_read_others(self, client: TestClient, store, auth_headers) -> None:
        user = store.add_user()
        other = store.add_user()

        response = client.get(f"/api/v1/people/{other.person_id}", headers=auth_headers(user))

        assert response.status_code == 403
        assert response.text == "InsufficientUserRole"

    def test_admin_of_unrelated_organisation(self, client: TestClient, store, auth_headers) -> None:
        admin = store.add_user(roles={UserRoles.ORGANISATION_ADMIN})
        other = store.add_user()
        store.add_organisation_member(store.add_organisation(), admin.person_id, is_admin=True)
        store.add_organisation_member(store.add_organisation(), other.person_id)

        response = client.get(f"/api/v1/people/{other.person_id}", headers=auth_headers(admin))

        assert response.status_code == 403
        assert response.text == "NoAccessToPerson"


class TestBlockUser:
    def test_requires_system_admin(self, client: TestClient, store, auth_headers) -> None:
        user = store.add_user()
        target = store.add_user()

        response = client.delete(f"/api/v1/login?userId={target.id}", headers=auth_headers(user))

        assert response.status_code == 403
        assert response.text == "InsufficientUserRole"

    def test_missing_user_id(self, client: TestClient, store, auth_headers) -> None:
        admin = store.add_user(roles={UserRoles.SYSTEM_ADMIN})

        response = client.delete("/api/v1/login", headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.text == "No user ID parameter specified."

    def test_blocks_user(self, client: TestClient, store, auth_headers, unit_of_work: MagicMock) -> None:
        admin = store.add_user(roles={UserRoles.SYSTEM_ADMIN})
        target = store.add_user()

        with patch("martialbase.api.v1.auth.UserService") as service_cls:
            service_cls.return_value.block_user = AsyncMock()
            response = client.delete(f"/api/v1/login?userId={target.id}", headers=auth_headers(admin))

        assert response.status_code == 204
        service_cls.return_value.block_user.assert_awaited_once_with(target.id)
        unit_of_work.commit.assert_awaited_once()


class TestRemoveOrganisationMember:
    def test_last_membership_is_refused(
        self,
        client: TestClient,
        store,
        auth_headers,
        unit_of_work: MagicMock,
    ) -> None:
        admin = store.add_user(roles={UserRoles.ORGANISATION_ADMIN})
        member = store.add_user()
        organisation_id = store.add_organisation()
        store.add_organisation_member(organisation_id, admin.person_id, is_admin=True)
        store.add_organisation_member(organisation_id, member.person_id)

        response = client.delete(
            f"/api/v1/organisations/{organisation_id}/people/{member.person_id}",
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert response.text == "OrphanPersonEntity"
        unit_of_work.rollback.assert_awaited_once()
        unit_of_work.commit.assert_not_awaited()


class TestCreateOrganisation:
    def test_blank_parent_creates_top_level(
        self,
        client: TestClient,
        store,
        auth_headers,
        unit_of_work: MagicMock,
    ) -> None:
        user = store.add_user()
        created = OrganisationResponse(id=str(uuid4()), initials="AB", name="Alpha")

        with patch("martialbase.api.v1.organisations.OrganisationService") as service_cls:
            service_cls.return_value.create_organisation = AsyncMock(return_value=created)
            response = client.post(
                "/api/v1/organisations",
                json={"initials": "AB", "name": "Alpha", "parentId": ""},
                headers=auth_headers(user),
            )

        assert response.status_code == 201
        payload, person_id = service_cls.return_value.create_organisation.await_args.args
        assert payload.parent_id is None
        assert person_id == user.person_id
        unit_of_work.commit.assert_awaited_once()


class TestChangeParent:
    def test_parent_cannot_be_itself(
        self,
        client: TestClient,
        store,
        auth_headers,
        unit_of_work: MagicMock,
    ) -> None:
        superuser = store.add_user(roles={UserRoles.SUPERUSER})
        organisation_id = store.add_organisation()

        response = client.put(
            f"/api/v1/organisations/{organisation_id}/parent?parentId={organisation_id}",
            headers=auth_headers(superuser),
        )

        assert response.status_code == 400
        assert response.text == CYCLIC_PARENT_MESSAGE
        unit_of_work.commit.assert_not_awaited()
