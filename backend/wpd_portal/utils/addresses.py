from email_validator import EmailNotValidError, validate_email


def normalize_email(value: str) -> str:
    """
    Canonical form used to store and look up registrants, the same one
    pydantic's EmailStr produces (domain lower-cased). Strings that are not
    valid addresses are only stripped, so they simply match nothing.
    """
    value = (value or "").strip()
    try:
        return validate_email(value, check_deliverability=False).normalized
    except EmailNotValidError:
        return value
