# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Certificate domain package."""

from src.domains.certificate.entities import Certificate, generate_certificate_number
from src.domains.certificate.repository import CertificateRepository

__all__ = [
    "Certificate",
    "CertificateRepository",
    "generate_certificate_number",
]
