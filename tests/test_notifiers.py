"""
Tests for the cancellation subscribers.
"""

import asyncio
import logging

import pytest

from dayslot.adapters import notifiers
from dayslot.adapters.notifiers import (
    AuditLogSubscriber,
    EmailCancellationNotifier,
    build_subscribers,
)
from dayslot.config import AppConfig, Recipient, SmtpConfig
from dayslot.domain.models import CancellationEvent

EVENT = CancellationEvent("aaaaaaaa")


@pytest.fixture
def sent(monkeypatch):
    """Capture aiosmtplib.send calls instead of talking to a server."""
    messages = []

    async def fake_send(message, **kwargs):
        messages.append((message, kwargs))
        return ({}, "OK")

    monkeypatch.setattr(notifiers.aiosmtplib, "send", fake_send)
    return messages


def test_audit_subscriber_logs_payload(caplog):
    with caplog.at_level(logging.INFO, logger="dayslot.audit"):
        AuditLogSubscriber()(EVENT)

    assert "Reservation cancelled" in caplog.text
    assert "aaaaaaaa" in caplog.text


def test_email_notifier_sends_message(sent):
    notifier = EmailCancellationNotifier(
        recipient=Recipient(name="Doctor", email="doctor@example.com"),
        smtp=SmtpConfig(host="smtp.example.com", port=465, username="u", password="p", use_tls=True),
        sender="desk@example.com",
    )

    asyncio.run(notifier(EVENT))

    assert len(sent) == 1
    message, kwargs = sent[0]
    assert message["To"] == "doctor@example.com"
    assert message["From"] == "desk@example.com"
    assert "aaaaaaaa" in message["Subject"]
    assert "Hello Doctor" in message.get_content()
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["port"] == 465
    assert kwargs["use_tls"] is True


def test_email_errors_propagate(monkeypatch):
    """The notifier does not hide SMTP errors; the hub isolates them."""

    async def failing_send(message, **kwargs):
        raise ConnectionRefusedError("no server")

    monkeypatch.setattr(notifiers.aiosmtplib, "send", failing_send)
    notifier = EmailCancellationNotifier(
        Recipient(name="Doctor", email="doctor@example.com"), SmtpConfig(), "desk@example.com"
    )

    with pytest.raises(ConnectionRefusedError):
        asyncio.run(notifier(EVENT))


def test_build_subscribers_order():
    config = AppConfig(notifications={
        "recipients": [
            {"name": "Doctor", "email": "doctor@example.com"},
            {"name": "Secretary", "email": "secretary@example.com"},
        ],
    })

    subscribers = build_subscribers(config)

    assert isinstance(subscribers[0], AuditLogSubscriber)
    assert [s.recipient.email for s in subscribers[1:]] == [
        "doctor@example.com",
        "secretary@example.com",
    ]


def test_build_subscribers_without_audit_log():
    config = AppConfig(notifications={"audit_log": False})

    assert build_subscribers(config) == []
