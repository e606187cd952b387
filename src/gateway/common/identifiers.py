"""Identifier helpers.

Request ids are KSUIDs (K-Sortable Unique IDentifiers): URL-safe, timestamp
prefixed and sortable chronologically, which keeps log lines for one request
easy to find and order."""

from ksuid import ksuid


def generate_ksuid() -> str:
    """Generate a K-Sortable Unique IDentifier (KSUID).

    Returns:
        str: A string representation of the generated KSUID.
    """
    return str(ksuid.Ksuid())
