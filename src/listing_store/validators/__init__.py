from .validator import (
    EMAIL_RX,
    PHONE_RX,
    Validator,
    byte_length,
    matches,
    permitted_value,
    unique,
    valid_website,
)

__all__ = [
    "EMAIL_RX",
    "PHONE_RX",
    "Validator",
    "byte_length",
    "matches",
    "permitted_value",
    "unique",
    "valid_website",
]
