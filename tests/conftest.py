"""
Pytest configuration and fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from kvkk_widget.api.kvkk_client import ClientConfig, KvkkClient
from kvkk_widget.api.schemas import ConsentNotFound, ConsentRecord
from kvkk_widget.host import HostBundle


@pytest.fixture
def client_config():
    """Client configuration pointing at a fake service."""
    return ClientConfig(
        base_url="https://cari.test/api/cari",
        api_key="test-key",
        timeout=0.5,
    )


@pytest.fixture
def make_record():
    """Factory for persisted consent records."""

    def _make(
        permitted: bool = False,
        code: str = "C-001",
        full_name: str = "Ayşe Yılmaz",
        phone: str = "5321234567",
    ) -> ConsentRecord:
        return ConsentRecord(
            code=code,
            full_name=full_name,
            phone=phone,
            permitted=permitted,
        )

    return _make


@pytest.fixture
def fake_client():
    """KvkkClient double with async lookup/create/update."""
    client = MagicMock(spec=KvkkClient)
    client.lookup = AsyncMock(return_value=ConsentNotFound(description="Cari bulunamadı"))
    client.create = AsyncMock()
    client.update = AsyncMock()
    return client


@pytest.fixture
def host_bundle():
    """Authenticated host bundle with a requester phone."""
    return HostBundle.from_query(token="host-token", phone="0532 123 45 67")
