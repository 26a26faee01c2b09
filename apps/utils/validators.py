from apps.utils.exceptions import ValidationFailed


def require_text(value, field_name):
    """
    Non-blank string check for free-text inputs (addresses, ids, ...).
    Returns the stripped value.
    """
    if value is None or not str(value).strip():
        raise ValidationFailed(f"{field_name} is required.", code=f"{field_name}_required")
    return str(value).strip()


def require_positive_quantity(quantity, maximum=None):
    if isinstance(quantity, bool):
        raise ValidationFailed("Quantity must be a whole number.", code="invalid_quantity")
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise ValidationFailed("Quantity must be a whole number.", code="invalid_quantity")
    if quantity < 1:
        raise ValidationFailed("Quantity must be at least 1.", code="invalid_quantity")
    if maximum is not None and quantity > maximum:
        raise ValidationFailed(f"Quantity cannot exceed {maximum}.", code="invalid_quantity")
    return quantity
