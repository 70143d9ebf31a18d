def redact_identity(value: str | None, visible_chars: int = 6) -> str:
    """
    Redact a user id or IP address for logging purposes.
    Shows the first few characters followed by ***.
    """
    if not value:
        return "None"
    if len(value) <= visible_chars:
        return "***"
    return f"{value[:visible_chars]}***"
