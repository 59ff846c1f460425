"""
Pytest fixtures for TPV backend tests.

Provides an app backed by an in-memory SQLite store, a local-only app with no
store, plain runtimes for service tests, and caller headers.
"""

from types import SimpleNamespace

import pytest

from tpv import create_app
from tpv.entities import Sale, SaleLine, TaxEntry, TAX_EXPENSE
from tpv.extensions import db
from tpv.services.forecast_service import ForecastClient
from tpv.services.outbound import OutboundQueue
from tpv.services.persistence import NullStore, PersistenceStore
from tpv.services.runtime import PosState, Runtime
from tpv.time_utils import today, utcnow


class FailingStore(PersistenceStore):
    """Configured store whose selected writes raise."""

    configured = True

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    def _call(self, name, entity):
        self.calls.append((name, entity.id))
        if name in self.fail_on:
            raise RuntimeError(f"{name} rejected")

    def upsert_ingredient(self, ingredient):
        self._call("upsert_ingredient", ingredient)

    def upsert_product(self, product):
        self._call("upsert_product", product)

    def upsert_supplier(self, supplier):
        self._call("upsert_supplier", supplier)

    def upsert_shift(self, shift):
        self._call("upsert_shift", shift)

    def insert_sale(self, sale):
        self._call("insert_sale", sale)

    def insert_tax_entry(self, entry):
        self._call("insert_tax_entry", entry)

    def insert_waste(self, waste):
        self._call("insert_waste", waste)

    def insert_purchase_order(self, order):
        self._call("insert_purchase_order", order)


class FakeCompletions:
    """Stands in for `client.chat.completions` of the OpenAI SDK."""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_openai_client(content=None, error=None):
    """Return (client, completions) with the SDK's attribute layout."""
    completions = FakeCompletions(content, error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def make_runtime(store=None, policy="ignore", forecaster=None):
    return Runtime(
        state=PosState.seeded(),
        outbound=OutboundQueue(store or NullStore()),
        forecaster=forecaster or ForecastClient(api_key=None),
        missing_reference_policy=policy,
    )


def make_sale(total_cents, method, shift_id=None, timestamp=None, product_id="p_cana"):
    return Sale(
        id=f"sale-{total_cents}-{method}",
        timestamp=timestamp or utcnow(),
        lines=(SaleLine(product_id, 1, total_cents),),
        total_cents=total_cents,
        amount_paid_cents=total_cents,
        change_cents=0,
        payment_method=method,
        seller_id="u2",
        tenant_id="demo",
        shift_id=shift_id,
    )


def make_expense(total_cents, is_cash_out=True, entry_date=None, rate=0.21, entry_id=None):
    return TaxEntry(
        id=entry_id or f"exp-{total_cents}",
        date=entry_date or today(),
        type=TAX_EXPENSE,
        concept="Hielo",
        base_cents=int(round(total_cents / (1 + rate))),
        tax_rate=rate,
        total_cents=total_cents,
        is_cash_out=is_cash_out,
    )


@pytest.fixture(scope='function')
def app():
    """Create application backed by an in-memory store."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'AUTO_CREATE_SCHEMA': True,
        'OPENAI_API_KEY': None,
    })

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def bare_app():
    """In-memory store left empty: no demo data in memory or in the store."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'AUTO_CREATE_SCHEMA': True,
        'SEED_DEMO_DATA': False,
        'OPENAI_API_KEY': None,
    })

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def local_app():
    """Create application with no persistence collaborator."""
    return create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': None,
        'OPENAI_API_KEY': None,
    })


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def local_client(local_app):
    return local_app.test_client()


@pytest.fixture(scope='function')
def app_runtime(app):
    return app.extensions["tpv"]


@pytest.fixture(scope='function')
def runtime():
    """Local-only runtime with the demo catalogue."""
    return make_runtime()


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "u1"}


@pytest.fixture
def seller_headers():
    return {"X-User-Id": "u2"}
