"""
Shared fixtures.

No test talks to the network or to MongoDB: the app runs on memory stores
and the rate source is a fake injected into create_app.
"""
import pytest

from tripplanner import create_app
from tripplanner.config import TestConfig
from tripplanner.core.currency_service import RateCache, RateProvider
from tripplanner.errors import ConversionFailure
from tripplanner.expenses.models import (
    Expense,
    MultiPayer,
    Participant,
    PayerShare,
    SinglePayer,
    Split,
)
from tripplanner.utils.enums import SplitMethod


class FakeRateSource:
    """Rate source answering from a dict; set ``fail`` to simulate an outage."""

    def __init__(self, rates=None, currencies=None):
        self.rates = dict(rates or {})
        self.currencies = currencies or ["EUR", "USD", "GBP", "SEK"]
        self.fail = False
        self.calls = []

    def fetch_rate(self, from_currency, to_currency):
        self.calls.append((from_currency, to_currency))
        key = f"{from_currency}_{to_currency}"
        if self.fail or key not in self.rates:
            raise ConversionFailure(f"no live rate for {key}")
        return self.rates[key]

    def list_currencies(self):
        if self.fail:
            raise ConversionFailure("currency list unavailable")
        return list(self.currencies)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rate_source():
    return FakeRateSource({"USD_EUR": 0.9, "EUR_USD": 1.1, "GBP_EUR": 1.2, "EUR_GBP": 0.8})


@pytest.fixture
def rates(rate_source, clock):
    return RateProvider(rate_source, cache=RateCache(ttl=3600, clock=clock))


@pytest.fixture
def app(rate_source, clock):
    return create_app(TestConfig, rate_source=rate_source, rate_cache=RateCache(ttl=3600, clock=clock))


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, name, email, password="secret-pass"):
    res = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.get_json()
    body = res.get_json()
    return {
        "id": body["user"]["id"],
        "name": name,
        "email": email,
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


@pytest.fixture
def alice(client):
    return register(client, "Alice", "alice@example.com")


@pytest.fixture
def bob(client):
    return register(client, "Bob", "bob@example.com")


@pytest.fixture
def carol(client):
    return register(client, "Carol", "carol@example.com")


@pytest.fixture
def shared_trip(client, alice, bob):
    """A trip owned by Alice and shared (edit) with Bob."""
    res = client.post("/api/trips", json={"name": "Lisbon"}, headers=alice["headers"])
    trip = res.get_json()
    client.post(
        f"/api/trips/{trip['id']}/share",
        json={"email": bob["email"]},
        headers=alice["headers"],
    )
    return trip


# Plain model builders for service-level tests

def make_expense(
    expense_id="e1",
    amount=100.0,
    currency="EUR",
    paid_by="a",
    method=SplitMethod.EQUAL,
    splits=None,
):
    if isinstance(paid_by, dict):
        payer = MultiPayer(tuple(PayerShare(u, a) for u, a in paid_by.items()))
    else:
        payer = SinglePayer(paid_by)
    return Expense(
        id=expense_id,
        title="Test",
        amount=amount,
        currency=currency,
        paid_by=payer,
        split_method=method,
        splits=splits if splits is not None else [Split("a"), Split("b")],
    )


def people(*ids):
    return [Participant(user_id=i, name=i.upper()) for i in ids]
