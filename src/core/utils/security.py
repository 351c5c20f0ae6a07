def mask_identifier(value: str | None, visible: int = 6) -> str:
    """
    Masks an opaque identifier (session id, token) for log output.
    Mask pattern: 1a2b3c***

    Args:
        value: str | None
            The identifier to be masked.
        visible: int
            How many leading characters stay readable.

    Returns:
        str
            The first `visible` characters followed by asterisks, or
            asterisks only when the value is too short to reveal anything.
    """
    if not value:
        return "***"
    if len(value) <= visible * 2:
        return "***"
    return f"{value[:visible]}***"
