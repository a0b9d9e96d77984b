"""Local account registry for the Case Organizer.

Accounts only partition data on a single device. Passwords are stored as
SHA-256 digests so they are not kept in clear text, which is obfuscation
rather than real credential security.
"""

from __future__ import annotations

import hashlib

from shared.kv_store import KeyValueStore

from app.models import clean
from app.partitions import load_accounts, save_accounts


def _hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def account_exists(store: KeyValueStore, username: str) -> bool:
    username = clean(username)
    return any(a.get("username") == username for a in load_accounts(store))


def sign_up(store: KeyValueStore, username: str, password: str) -> bool:
    """Register a new account. Returns False for blank input or a taken name."""
    username = clean(username)
    if not username or not password:
        return False
    accounts = load_accounts(store)
    if any(a.get("username") == username for a in accounts):
        return False
    accounts.append({"username": username, "password_hash": _hash_password(password)})
    save_accounts(store, accounts)
    return True


def verify_login(store: KeyValueStore, username: str, password: str) -> bool:
    username = clean(username)
    if not username or not password:
        return False
    for account in load_accounts(store):
        if account.get("username") == username:
            return account.get("password_hash") == _hash_password(password)
    return False
