# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence contract for certificates."""

from abc import ABC, abstractmethod

from src.domains.certificate.entities import Certificate


class CertificateRepository(ABC):
    """Abstract certificate store. Missing certificates are returned as None."""

    @abstractmethod
    async def find_by_id(self, certificate_id: str) -> Certificate | None:
        ...

    @abstractmethod
    async def find_by_enrollment_id(self, enrollment_id: str) -> Certificate | None:
        ...

    @abstractmethod
    async def find_by_number(self, certificate_number: str) -> Certificate | None:
        ...

    @abstractmethod
    async def find_by_user_id(self, user_id: str) -> list[Certificate]:
        ...

    @abstractmethod
    async def save(self, certificate: Certificate) -> Certificate:
        ...

    @abstractmethod
    async def update(self, certificate: Certificate) -> Certificate:
        ...
