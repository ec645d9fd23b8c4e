"""Account list lookup."""

from typing import Any, Mapping, Optional, Sequence

ACCOUNT_LOOKUP_KEYS = ("acct", "cur", "token")


def find_account_entry(
    accounts: Sequence[Mapping[str, Any]],
    key: str,
    value: Any,
) -> Optional[Mapping[str, Any]]:
    """
    First account entry whose key field equals value.

    Entries look like {"acct": "CR123", "cur": "USD", "token": "a1-..."}.

    Raises:
        ValueError: if key is not one of acct, cur or token
    """
    if key not in ACCOUNT_LOOKUP_KEYS:
        raise ValueError(f"Account lookup key must be one of {', '.join(ACCOUNT_LOOKUP_KEYS)}")

    for entry in accounts:
        if entry.get(key) == value:
            return entry
    return None
