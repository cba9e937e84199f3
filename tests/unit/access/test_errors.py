# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for failure rendering."""

import pytest

from martialbase.domains.access import (
    BadParameter,
    CommitFailed,
    EntityIdNotFound,
    EntityRelationNotFound,
    ErrorCodeFailure,
    ErrorResponseCode,
    Failure,
    NoSubject,
    NotRegistered,
    OrphanPersonEntityError,
    OrphanSchoolEntityError,
    ScopeFailure,
    StructuralValidationFailure,
    render_failure,
)


class TestErrorResponseCode:
    """Tests for error code tokens."""

    @pytest.mark.parametrize(
        "code,token",
        [
            (ErrorResponseCode.AZURE_USER_NOT_REGISTERED, "AzureUserNotRegistered"),
            (ErrorResponseCode.INSUFFICIENT_USER_ROLE, "InsufficientUserRole"),
            (ErrorResponseCode.NO_ORGANISATION_ACCESS, "NoOrganisationAccess"),
            (ErrorResponseCode.NOT_SCHOOL_SECRETARY, "NotSchoolSecretary"),
            (ErrorResponseCode.ORPHAN_PERSON_ENTITY, "OrphanPersonEntity"),
        ],
    )
    def test_token_is_pascal_case_name(self, code: ErrorResponseCode, token: str) -> None:
        """Test that tokens are the PascalCase code names."""
        assert code.token == token

    def test_codes_are_stable(self) -> None:
        """Test that numeric values match the published codes."""
        assert ErrorResponseCode.NONE == 0
        assert ErrorResponseCode.AZURE_USER_NOT_REGISTERED == 1
        assert ErrorResponseCode.ORPHAN_SCHOOL_ENTITY == 11


class TestRenderFailure:
    """Tests for render_failure()."""

    def test_structural_validation_is_500_with_field_map(self) -> None:
        failure = StructuralValidationFailure({"Name": ["Name required."]})

        assert render_failure(failure) == (500, {"Name": ["Name required."]})

    def test_bad_parameter_is_400(self) -> None:
        assert render_failure(BadParameter.missing("person ID")) == (
            400,
            "No person ID parameter specified.",
        )
        assert render_failure(BadParameter.invalid("isAdmin")) == (
            400,
            "Invalid value provided for isAdmin parameter.",
        )

    def test_entity_id_not_found_is_404(self) -> None:
        failure = EntityIdNotFound("Organisation", "abc")

        assert render_failure(failure) == (404, "Organisation ID 'abc' not found.")

    def test_entity_relation_not_found_is_404(self) -> None:
        failure = EntityRelationNotFound("Person", "p1", "school", "s1")

        assert render_failure(failure) == (404, "Person 'p1' not found in school 's1'")

    def test_no_subject_is_401(self) -> None:
        assert render_failure(NoSubject()) == (401, "Auth token does not contain a valid user ID.")

    def test_not_registered_is_403_with_token(self) -> None:
        assert render_failure(NotRegistered()) == (403, "AzureUserNotRegistered")

    def test_scope_failure_is_403_with_token(self) -> None:
        failure = ScopeFailure(ErrorResponseCode.NOT_ORGANISATION_ADMIN)

        assert render_failure(failure) == (403, "NotOrganisationAdmin")

    def test_error_code_failure_is_403(self) -> None:
        failure = ErrorCodeFailure(ErrorResponseCode.INSUFFICIENT_USER_ROLE)

        assert render_failure(failure) == (403, "InsufficientUserRole")

    def test_commit_failed_is_500(self) -> None:
        assert render_failure(CommitFailed()) == (500, "Failed to save changes to database context.")

    def test_unknown_failure_raises(self) -> None:
        with pytest.raises(TypeError):
            render_failure(Failure())


class TestOrphanErrors:
    """Tests for orphan conflict exceptions."""

    def test_orphan_person_carries_code(self) -> None:
        error = OrphanPersonEntityError()

        assert error.code is ErrorResponseCode.ORPHAN_PERSON_ENTITY
        assert "just one organisation" in error.message

    def test_orphan_school_carries_code(self) -> None:
        error = OrphanSchoolEntityError()

        assert error.code is ErrorResponseCode.ORPHAN_SCHOOL_ENTITY
        assert error.code.token == "OrphanSchoolEntity"
