"""MartialBase Backend.

Business-record API for martial arts organisations, schools, people,
documents and grades, guarded by a fixed request authorization and
validation pipeline.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
