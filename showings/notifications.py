"""Appointment notifications.

The delivery channel (email, SMS) lives outside this service. LoggingNotifier
builds the message that would be sent and logs it.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from showings.models import Appointment, Property

logger = logging.getLogger(__name__)

GENERAL_CONSULTATION = "General consultation"


class Notifier(Protocol):
    def appointment_received(self, appointment: Appointment, prop: Optional[Property]) -> dict: ...

    def appointment_confirmed(self, appointment: Appointment, prop: Optional[Property]) -> dict: ...

    def appointment_cancelled(self, appointment: Appointment, prop: Optional[Property]) -> dict: ...


class LoggingNotifier:
    """Notifier that logs messages instead of sending them. Keeps no history."""

    def _record(self, kind: str, appointment: Appointment, prop: Optional[Property]) -> dict:
        recipients = [appointment.email]
        if appointment.delegate_email:
            recipients.append(appointment.delegate_email)

        message = {
            "kind": kind,
            "to": recipients,
            "appointment_id": appointment.id,
            "subject": prop.title if prop is not None else GENERAL_CONSULTATION,
            "when": f"{appointment.date.isoformat()} {appointment.time.strftime('%H:%M')}",
            "sent_at": datetime.now(timezone.utc),
        }
        logger.info(
            "Notification %s for appointment %s sent to %s",
            kind, appointment.id, ", ".join(recipients),
        )
        return message

    def appointment_received(self, appointment: Appointment, prop: Optional[Property]) -> dict:
        return self._record("received", appointment, prop)

    def appointment_confirmed(self, appointment: Appointment, prop: Optional[Property]) -> dict:
        return self._record("confirmed", appointment, prop)

    def appointment_cancelled(self, appointment: Appointment, prop: Optional[Property]) -> dict:
        return self._record("cancelled", appointment, prop)
