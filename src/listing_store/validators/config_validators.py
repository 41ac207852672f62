def to_uppercase(value: str | None) -> str | None:
    """
    Converts a string to uppercase if it's not None.
    """
    if value is None:
        return None
    return value.upper()

def to_lowercase(value: str | None) -> str | None:
    """
    Converts a string to lowercase if it's not None.
    """
    if value is None:
        return None
    return value.lower()

def to_positive_float(value: float) -> float:
    """
    Reject zero or negative durations (a zero deadline would fail every store call).
    """
    if value <= 0:
        raise ValueError("must be greater than zero")
    return float(value)
