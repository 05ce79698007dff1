from flask import current_app
from flask_mail import Message

from ..extensions import mail
from ..utils.time import api_iso_z


def send_email(subject, recipients, body):
    """Best-effort send. Failures are logged and never raised."""
    if not current_app.config.get("NOTIFICATIONS_ENABLED", True):
        return False
    recipients = [r for r in recipients if r]
    if not recipients:
        return False

    msg = Message(subject, recipients=recipients)
    msg.body = body
    try:
        mail.send(msg)
        current_app.logger.info(f"Mail sent: {subject!r} -> {recipients}")
        return True
    except Exception as e:
        current_app.logger.error(f"Failed to send email {subject!r} to {recipients}: {e}")
        return False


def _when(reservation) -> str:
    return f"{api_iso_z(reservation.date)[:10]} at {reservation.time_label}"


def notify_booking_created(reservation, restaurant):
    send_email(
        "Reservation Received - CNC World Tour",
        [reservation.email],
        f"Hello {reservation.name},\n\n"
        f"Your reservation at {restaurant.display_name} for {_when(reservation)} has been received "
        f"and is awaiting confirmation from the restaurant.\n\n"
        f"Guests: {reservation.number_of_guests}\n"
        f"Special Instructions: {reservation.instructions or 'None'}\n\n"
        f"Thank you for booking with CNC World Tour!",
    )
    send_email(
        "New Reservation at Your Restaurant",
        [restaurant.email],
        f"Hello {restaurant.full_name},\n\n"
        f"A new reservation has been made at your restaurant.\n\n"
        f"Details:\nName: {reservation.name}\nEmail: {reservation.email}\n"
        f"Date: {_when(reservation)}\nGuests: {reservation.number_of_guests}\n"
        f"Contact: {reservation.contact or 'Not provided'}\n\n"
        f"Instructions: {reservation.instructions or 'None'}",
    )


def notify_status_changed(reservation, restaurant):
    send_email(
        f"Reservation {reservation.status.capitalize()} - CNC World Tour",
        [reservation.email],
        f"Hello {reservation.name},\n\n"
        f"Your reservation at {restaurant.display_name} for {_when(reservation)} "
        f"has been {reservation.status}.\n\nCNC World Tour",
    )


def notify_cancelled(reservation, restaurant):
    send_email(
        "Reservation Cancelled - CNC World Tour",
        [reservation.email],
        f"Hello {reservation.name},\n\n"
        f"Your reservation at {restaurant.display_name} for {_when(reservation)} has been cancelled "
        f"by the restaurant.\n\nCNC World Tour",
    )
