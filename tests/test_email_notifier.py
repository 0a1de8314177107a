import asyncio
import smtplib

import pytest

from pricewatch.alerts.email import EmailNotifier, SmtpTransport
from pricewatch.exceptions import DeliveryError


class DummySMTP:
    instances = []

    def __init__(self, host, port, timeout=None, **kwargs):
        self.host = host
        self.port = port
        self.calls = []
        self.messages = []
        DummySMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg):
        self.messages.append(msg)


class RejectingSMTP(DummySMTP):
    def login(self, user, password):
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")


class RecordingTransport:
    def __init__(self):
        self.sent = []

    def send(self, recipient, subject, body):
        self.sent.append((recipient, subject, body))


def make_transport():
    return SmtpTransport(
        smtp_host="smtp.test",
        smtp_port=587,
        smtp_user="bot@test",
        smtp_password="secret",
    )


def test_message_template():
    notifier = EmailNotifier(RecordingTransport())

    body = notifier.format_body("Telefon", 100.0, 89.5, "https://n11.com/urun/x")

    assert body == (
        "Telefon isimli ürünün fiyatı artık: 89.50 (eski fiyatı: 100.00)\n"
        "Ürünün linki: https://n11.com/urun/x"
    )


def test_notify_hands_message_to_transport():
    transport = RecordingTransport()
    notifier = EmailNotifier(transport, subject="Fiyat düştü")

    sent = asyncio.run(notifier.notify("a@x.com", "Telefon", 100.0, 89.5, "https://n11.com/urun/x"))

    assert sent is True
    assert transport.sent[0][0] == "a@x.com"
    assert transport.sent[0][1] == "Fiyat düştü"


def test_smtp_transport_uses_starttls_and_credentials(monkeypatch):
    DummySMTP.instances = []
    monkeypatch.setattr("pricewatch.alerts.email.smtplib.SMTP", DummySMTP)

    make_transport().send("a@x.com", "Konu", "Gövde")

    server = DummySMTP.instances[0]
    assert (server.host, server.port) == ("smtp.test", 587)
    assert server.calls == ["starttls", ("login", "bot@test", "secret")]
    msg = server.messages[0]
    assert msg["To"] == "a@x.com"
    assert msg["From"] == "bot@test"
    assert msg["Subject"] == "Konu"


def test_smtp_failure_becomes_delivery_error(monkeypatch):
    monkeypatch.setattr("pricewatch.alerts.email.smtplib.SMTP", RejectingSMTP)

    with pytest.raises(DeliveryError) as exc_info:
        make_transport().send("a@x.com", "Konu", "Gövde")

    assert exc_info.value.recipient == "a@x.com"


def test_notify_reports_delivery_failure_without_raising(monkeypatch):
    monkeypatch.setattr("pricewatch.alerts.email.smtplib.SMTP", RejectingSMTP)
    notifier = EmailNotifier(make_transport())

    sent = asyncio.run(notifier.notify("a@x.com", "Telefon", 100.0, 89.5, "https://n11.com/urun/x"))

    assert sent is False
