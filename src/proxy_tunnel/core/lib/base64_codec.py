"""Base64 encoding for proxy credentials."""

import base64


def encode_base64(data: bytes | str) -> str:
    """Encode data with the RFC 4648 standard alphabet and ``=`` padding.

    Args:
        data: Raw bytes, or text which is encoded as UTF-8 first

    Returns:
        str: ASCII base64 text
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii")


def basic_auth_token(username: str, password: str) -> str:
    """Build the token for an HTTP ``Basic`` authorization header."""
    return encode_base64(f"{username}:{password}")
