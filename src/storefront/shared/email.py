"""Structural email check shared by guest orders and guest reviews."""

import re

_EMAIL_PATTERN = re.compile(r"^[\w.+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$")


def is_valid_email(email):
    if not email or ".." in email:
        return False
    return _EMAIL_PATTERN.match(email.strip()) is not None


def normalize_email(email):
    return email.strip().lower() if email else None
