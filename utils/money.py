from decimal import Decimal, InvalidOperation


def to_money_str(value) -> str | None:
    """Convert Decimal, int or float to a string for SQLite storage."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (int, float)):
        return f"{value:.2f}"
    return str(value)


def from_money_str(value) -> Decimal:
    """Convert a stored amount back to Decimal."""
    if value is None or value == "":
        return Decimal("0.00")
    return Decimal(str(value))


def parse_amount(value) -> Decimal:
    """Parse user input into a Decimal amount; raises ValueError if unparseable."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = f"{value:.2f}"
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, AttributeError):
        raise ValueError(f"Invalid amount: {value!r}") from None
