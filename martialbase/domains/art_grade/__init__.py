# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Art grade domain package."""

from martialbase.domains.art_grade.service import (
    ArtGradeNotFoundError,
    ArtGradeService,
    ArtGradeServiceError,
)

__all__ = [
    "ArtGradeService",
    "ArtGradeServiceError",
    "ArtGradeNotFoundError",
]
