import asyncio

from fastapi.testclient import TestClient

from pricewatch.alerts.email import EmailNotifier, LogTransport
from pricewatch.api.main import create_app
from pricewatch.exceptions import ExtractionError
from pricewatch.orchestrator.coordinator import PriceMonitor
from pricewatch.storage import SubscriptionStore

N11_LINK = "https://urun.n11.com/telefon/abc-123"


class DummyExtractor:
    def __init__(self, price=100.0, error=None):
        self.price = price
        self.error = error

    async def extract(self, link, family):
        if self.error:
            raise self.error
        return self.price

    async def fetch_title(self, link):
        return link


def make_client(tmp_path, **kwargs):
    extractor = DummyExtractor(**kwargs)
    store = SubscriptionStore(tmp_path / "db.json", extractor=extractor)
    monitor = PriceMonitor(store, extractor, EmailNotifier(LogTransport()))
    return TestClient(create_app(monitor)), store


def test_health(tmp_path):
    client, _ = make_client(tmp_path)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_subscribe_creates_then_is_idempotent(tmp_path):
    client, store = make_client(tmp_path, price=249.9)
    body = {"email": "a@x.com", "link": N11_LINK}

    first = client.post("/subscriptions", json=body)
    second = client.post("/subscriptions", json=body)

    assert first.status_code == 201
    assert first.json() == {"result": "created"}
    assert second.status_code == 200
    assert second.json() == {"result": "already_subscribed"}
    assert store.snapshot().find(N11_LINK).subscribers == ["a@x.com"]


def test_subscribe_rejects_invalid_input(tmp_path):
    client, store = make_client(tmp_path)

    bad_email = client.post("/subscriptions", json={"email": "not-an-email", "link": N11_LINK})
    bad_link = client.post("/subscriptions", json={"email": "a@x.com", "link": "ftp://n11"})

    assert bad_email.status_code == 422
    assert bad_link.status_code == 422
    assert store.snapshot().items == []


def test_subscribe_reports_extraction_failure(tmp_path):
    client, store = make_client(tmp_path, error=ExtractionError(N11_LINK, "HTTP 503"))

    response = client.post("/subscriptions", json={"email": "a@x.com", "link": N11_LINK})

    assert response.status_code == 502
    assert response.json()["result"] == "extraction_failed"
    assert store.snapshot().items == []


def test_unsubscribe_outcomes(tmp_path):
    client, store = make_client(tmp_path)
    asyncio.run(store.add_subscription(N11_LINK, "a@x.com"))

    missing_link = client.post(
        "/subscriptions/remove", json={"email": "a@x.com", "link": "https://missing.example/p"}
    )
    missing_user = client.post("/subscriptions/remove", json={"email": "b@x.com", "link": N11_LINK})
    removed = client.post("/subscriptions/remove", json={"email": "a@x.com", "link": N11_LINK})

    assert (missing_link.status_code, missing_link.json()) == (404, {"result": "no_such_link"})
    assert (missing_user.status_code, missing_user.json()) == (404, {"result": "no_such_user"})
    assert (removed.status_code, removed.json()) == (200, {"result": "removed"})
    assert store.snapshot().items == []


def test_list_items(tmp_path):
    client, store = make_client(tmp_path, price=89.5)
    asyncio.run(store.add_subscription(N11_LINK, "a@x.com"))

    response = client.get("/items")

    assert response.status_code == 200
    assert response.json() == {
        "items": [{"site": "n11", "link": N11_LINK, "subscribers": ["a@x.com"], "price": 89.5}]
    }


def test_corrupt_store_returns_500(tmp_path):
    client, _ = make_client(tmp_path)
    (tmp_path / "db.json").write_text("[broken")

    response = client.get("/items")

    assert response.status_code == 500
