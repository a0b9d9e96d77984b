"""Per-account persistence partitions.

Storage keys:

- ``users``            account registry, JSON array of {username, password_hash}
- ``currentUser``      the active account id, as plain text
- ``cases_<account>``  that account's case collection, JSON array

Loads never raise: a missing, unreadable or malformed value is treated as
absent. Saves let ``PersistenceError`` through so the caller can decide how
to report it.
"""

from __future__ import annotations

import json
import logging

from shared.kv_store import KeyValueStore, PersistenceError

from app.models import Case, cases_from_json, cases_to_json

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = "users"
ACTIVE_ACCOUNT_KEY = "currentUser"
CASES_KEY_PREFIX = "cases_"


def cases_key(account_id: str) -> str:
    return f"{CASES_KEY_PREFIX}{account_id}"


def _read(store: KeyValueStore, key: str) -> str | None:
    try:
        return store.get(key)
    except PersistenceError as exc:
        logger.warning("Treating %s as empty: %s", key, exc)
        return None


# ── Case collections ─────────────────────────────────────────────────────────


def load_cases(store: KeyValueStore, account_id: str) -> tuple[Case, ...]:
    """Load an account's collection; anything unusable is an empty collection."""
    return cases_from_json(_read(store, cases_key(account_id)))


def save_cases(store: KeyValueStore, account_id: str, cases: tuple[Case, ...]) -> None:
    store.set(cases_key(account_id), cases_to_json(cases))


# ── Active account ───────────────────────────────────────────────────────────


def load_active_account(store: KeyValueStore) -> str | None:
    value = _read(store, ACTIVE_ACCOUNT_KEY)
    if value is None:
        return None
    return value.strip() or None


def save_active_account(store: KeyValueStore, account_id: str) -> None:
    store.set(ACTIVE_ACCOUNT_KEY, account_id)


def clear_active_account(store: KeyValueStore) -> None:
    store.delete(ACTIVE_ACCOUNT_KEY)


# ── Account registry ─────────────────────────────────────────────────────────


def load_accounts(store: KeyValueStore) -> list[dict]:
    """Load the account registry. Returns an empty list if missing or malformed."""
    raw = _read(store, ACCOUNTS_KEY)
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Account registry is not valid JSON: %s", exc)
        return []
    if not isinstance(data, list):
        logger.warning("Account registry is not an array; ignoring it")
        return []
    return [a for a in data if isinstance(a, dict) and a.get("username")]


def save_accounts(store: KeyValueStore, accounts: list[dict]) -> None:
    store.set(ACCOUNTS_KEY, json.dumps(accounts, indent=2, ensure_ascii=False))
