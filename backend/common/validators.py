"""
Shared field validators.
"""
import re
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator


# ============================
# Phone Number Validator
# ============================

phone_regex = RegexValidator(
    regex=r'^\+?\d{9,15}$',
    message="Phone number must contain 9-15 digits, optionally prefixed with +"
)


def normalize_phone_number(value):
    """
    Strip spaces, dashes and parentheses from a phone number.
    Rejects non-ASCII input so look-alike digits cannot slip through.
    """
    cleaned = re.sub(r'[\s\-()]', '', value or '')

    if not cleaned.isascii():
        raise ValidationError("Phone number must contain only ASCII characters")

    phone_regex(cleaned)
    return cleaned


# ============================
# Rating Validator
# ============================

def validate_star_rating(value):
    """Ratings are whole stars between 1 and 5."""
    if value is None or not 1 <= int(value) <= 5:
        raise ValidationError("Rating must be between 1 and 5")
