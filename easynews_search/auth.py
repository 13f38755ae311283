"""Credential encoding for the remote search API."""

import base64


def create_basic(username: str, password: str) -> str:
    """
    Create a Basic Authentication header value.

    Args:
        username: Account username
        password: Account password

    Returns:
        "Basic " followed by base64("username:password")
    """
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"
