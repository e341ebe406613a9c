"""Lenient ``key: value`` header text parsing."""

from __future__ import annotations


def parse_headers(text: str) -> dict[str, str]:
    """Parse one ``key: value`` pair per line into a dict.

    Lines without a colon, or with an empty key or value, are dropped
    silently. Only the first colon separates key from value, so values such
    as ``Host: example.com:8080`` survive intact. Later duplicates win.
    """
    headers: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        key, sep, value = line.partition(":")
        key, value = key.strip(), value.strip()
        if not sep or not key or not value:
            continue
        headers[key] = value
    return headers


def format_headers(headers: dict[str, str]) -> str:
    """Inverse of :func:`parse_headers` for well-formed mappings."""
    return "\n".join(f"{key}: {value}" for key, value in headers.items())
