"""SMTP delivery of trip join requests to hosts."""

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from travel_buddy.domain.trips import JoinRequest
from travel_buddy.errors import NotificationError
from travel_buddy.services.trips import JoinRequestNotifier

_logger = logging.getLogger(__name__)


@dataclass
class SmtpJoinRequestNotifier(JoinRequestNotifier):
    """Sends join request emails through an SMTP relay."""

    host: str | None
    sender: str
    port: int = 587
    user: str | None = None
    password: str | None = None
    use_tls: bool = True
    timeout_seconds: float = 15.0

    async def send_join_request(self, request: JoinRequest) -> None:
        """Email the host; raises ``NotificationError`` when delivery fails."""
        if not self.host:
            raise NotificationError("Email delivery is not configured")
        message = build_join_request_message(request, self.sender)
        await asyncio.to_thread(self._send, message)
        _logger.info("Join request email sent: trip_id=%s", request.trip_id)

    def _send(self, message: EmailMessage) -> None:
        try:
            with smtplib.SMTP(
                self.host, self.port, timeout=self.timeout_seconds
            ) as client:
                if self.use_tls:
                    client.starttls()
                if self.user:
                    client.login(self.user, self.password or "")
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            _logger.warning("SMTP delivery failed: %s", exc)
            raise NotificationError("Failed to send join request email") from exc


def build_join_request_message(request: JoinRequest, sender: str) -> EmailMessage:
    """Compose the email telling a host how to add the requester."""
    message = EmailMessage()
    message["Subject"] = f"New Join Request for Trip: {request.destination}"
    message["From"] = sender
    message["To"] = request.host_email
    requester_email = request.requester_email or "No email provided"
    message.set_content(
        "Hello Trip Host,\n\n"
        "Someone is interested in joining your trip!\n\n"
        f"Trip: {request.destination}\n"
        f"Name: {request.requester_name}\n"
        f"Email: {requester_email}\n\n"
        "To add this buddy, open the Travel Buddy app, go to Profile -> My Trips, "
        f'select "{request.destination}", tap "Add Buddy" and enter '
        f"{requester_email}.\n\n"
        "Happy traveling!\n"
        "The Travel Buddy Team\n"
    )
    return message
