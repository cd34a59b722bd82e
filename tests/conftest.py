from datetime import datetime

import pytest

from bookcheckout.catalog import Catalog
from bookcheckout.circulation import Ledger
from bookcheckout.models import Actor, Role
from bookcheckout.store import Store

NOW = datetime(2025, 3, 1, 10, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    s = Store(":memory:")
    yield s
    s.close()


@pytest.fixture
def catalog(store):
    return Catalog(store)


@pytest.fixture
def ledger(store, catalog):
    return Ledger(store, catalog, max_active_loans=3)


@pytest.fixture
def student():
    return Actor(1, Role.STUDENT, "emma")


@pytest.fixture
def admin():
    return Actor(100, Role.ADMIN, "mr_admin")
