"""Tests for the logging notifier."""

from datetime import time

from showings.deps import get_notifier
from showings.models import Appointment, Property
from showings.notifications import LoggingNotifier
from tests.conftest import MONDAY


def appointment(**overrides) -> Appointment:
    fields = dict(
        id=3,
        property_id=1,
        date=MONDAY,
        time=time(10, 30),
        name="Jane Doe",
        email="jane@example.com",
        phone="0612345678",
        consent=True,
    )
    fields.update(overrides)
    return Appointment(**fields)


class TestLoggingNotifier:
    def test_received_message(self, caplog):
        notifier = LoggingNotifier()
        prop = Property(id=1, title="Flat with balcony", street="rue de Rivoli", postal_code="75001", city="Paris")
        with caplog.at_level("INFO", logger="showings.notifications"):
            message = notifier.appointment_received(appointment(), prop)

        assert message["kind"] == "received"
        assert message["to"] == ["jane@example.com"]
        assert message["subject"] == "Flat with balcony"
        assert message["when"] == "2030-01-07 10:30"
        assert "jane@example.com" in caplog.text

    def test_delegate_is_copied(self):
        message = LoggingNotifier().appointment_confirmed(
            appointment(delegate_name="Paul", delegate_email="paul@example.com"), None
        )
        assert message["to"] == ["jane@example.com", "paul@example.com"]
        assert message["subject"] == "General consultation"

    def test_cancellation(self):
        message = LoggingNotifier().appointment_cancelled(appointment(property_id=None), None)
        assert message["kind"] == "cancelled"

    def test_shared_notifier_keeps_no_history(self):
        notifier = get_notifier()
        before = dict(vars(notifier))
        for _ in range(100):
            notifier.appointment_received(appointment(), None)
        assert vars(notifier) == before == {}
