"""
Shared fixtures for adversarial tests.

Database fixtures (``pool``, ``insert_share_link``, ``insert_credential``)
come from the top-level conftest; every adversarial test starts from
empty tables.
"""

from collections.abc import Generator

import pytest


@pytest.fixture(autouse=True)
def clean_tables(clean_database: None) -> Generator[None, None, None]:
    yield
