from listing_store.models.listing import ListingDraft

from .validator import (
    EMAIL_RX,
    PHONE_RX,
    Validator,
    byte_length,
    matches,
    unique,
    valid_website,
)

# Byte limits for free-text fields (UTF-8)
TEXT_LIMITS = {
    "name": 200,
    "level": 200,
    "contact": 200,
    "address": 500,
}
MODE_MIN_ENTRIES = 1
MODE_MAX_ENTRIES = 5
MODE_ENTRY_MAX_BYTES = 50


def _check_text(v: Validator, key: str, value, limit: int | None = None) -> bool:
    """Record 'must be provided' / type / length failures; True if the value is usable text."""
    v.check(value is not None and value != "", key, "must be provided")
    if value is None or value == "":
        return False
    if not isinstance(value, str):
        v.add_error(key, "must be a string")
        return False
    if limit is not None:
        v.check(byte_length(value) <= limit, key, f"must not be more than {limit} bytes long")
    return True


def validate_listing(v: Validator, draft: ListingDraft) -> None:
    """
    Check a draft against the listing invariants, recording failures on `v`.

    Free-text fields must be provided and fit their byte limits; phone, email and
    website must match their formats; mode must hold 1 to 5 distinct, short entries.
    """
    for key, limit in TEXT_LIMITS.items():
        _check_text(v, key, getattr(draft, key), limit)

    if _check_text(v, "phone", draft.phone):
        v.check(matches(draft.phone, PHONE_RX), "phone", "must be a valid phone number")

    if _check_text(v, "email", draft.email):
        v.check(matches(draft.email, EMAIL_RX), "email", "must be a valid email address")

    if _check_text(v, "website", draft.website):
        v.check(valid_website(draft.website), "website", "must be a valid URL")

    mode = draft.mode
    v.check(mode is not None, "mode", "must be provided")
    if mode is None:
        return
    if isinstance(mode, (str, bytes)) or not isinstance(mode, list):
        v.add_error("mode", "must be a list of entries")
        return
    v.check(len(mode) >= MODE_MIN_ENTRIES, "mode", f"must contain at least {MODE_MIN_ENTRIES} entry")
    v.check(len(mode) <= MODE_MAX_ENTRIES, "mode", f"must contain at most {MODE_MAX_ENTRIES} entries")
    if not all(isinstance(entry, str) for entry in mode):
        v.add_error("mode", "entries must be strings")
        return
    v.check(unique(mode), "mode", "must not contain duplicate entries")
    v.check(all(entry for entry in mode), "mode", "must not contain empty entries")
    v.check(
        all(byte_length(entry) <= MODE_ENTRY_MAX_BYTES for entry in mode),
        "mode",
        f"entries must not be more than {MODE_ENTRY_MAX_BYTES} bytes long",
    )
