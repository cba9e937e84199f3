# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for organisation request models."""

import pytest

from martialbase.models.organisation import OrganisationCreateRequest


class TestOrganisationCreateRequest:
    @pytest.mark.parametrize("parent_id", ["", "   ", None])
    def test_blank_parent_is_none(self, parent_id) -> None:
        request = OrganisationCreateRequest.model_validate({"initials": "AB", "name": "Alpha", "parentId": parent_id})

        assert request.parent_id is None

    def test_parent_kept(self) -> None:
        request = OrganisationCreateRequest.model_validate({"initials": "AB", "name": "Alpha", "parentId": "org-1"})

        assert request.parent_id == "org-1"
