"""
Contact form and newsletter sign-up.
"""

from __future__ import annotations

import logging

from portfolio.db import ALREADY_SUBSCRIBED, ContactMessageRecord, DbClient
from shared import validation

logger = logging.getLogger(__name__)

CONTACT_SENT = "Your message has been sent! We'll get back to you soon."
SUBSCRIBED = "Thank you for subscribing to our newsletter!"


def send_contact_message(
    db: DbClient, *, name: str, email: str, subject: str, message: str
) -> ContactMessageRecord:
    fields = validation.validate_contact(name, email, subject, message)
    record = ContactMessageRecord(**fields)
    db.save_contact_message(record)
    logger.info("Stored contact message %s", record.id)
    return record


def subscribe_newsletter(db: DbClient, email: str) -> tuple[bool, str]:
    """Returns ``(created, message)``; an existing subscriber is not an error."""
    email = validation.validate_email(email)
    if db.get_subscriber(email):
        return False, ALREADY_SUBSCRIBED
    db.add_subscriber(email)
    logger.info("New newsletter subscriber")
    return True, SUBSCRIBED
