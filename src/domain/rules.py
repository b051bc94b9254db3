"""Input rules shared by registration and payment initiation"""

import re

# Kenyan MSISDN in international format: 254 followed by 9 digits
PHONE_PATTERN = re.compile(r"^254\d{9}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_phone(phone: str) -> bool:
    return bool(phone) and PHONE_PATTERN.match(phone) is not None


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None
