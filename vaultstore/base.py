"""
Store interface shared by every storage backend.

Users and authenticator entries are plain dicts:

    user  = {id, username, email, password_hash, created_at, updated_at}
    entry = {id, user_id, name, secret, issuer, account_name,
             digits, time_step, created_at, updated_at}

Backends implement the small abstract primitives; password hashing, id
generation and timestamps live here so every backend behaves the same.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from otpcore import DEFAULT_DIGITS, DEFAULT_TIME_STEP

from .exceptions import EntryNotFoundError, UserAlreadyExistsError

logger = logging.getLogger(__name__)

UPDATABLE_ENTRY_FIELDS = ("name", "issuer", "account_name")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


class Store(ABC):
    """Abstract user / authenticator-entry store."""

    # --- primitives ------------------------------------------------------
    @abstractmethod
    def add_user(self, user: Dict) -> None:
        """Persist a new user dict; raise UserAlreadyExistsError on duplicates."""

    @abstractmethod
    def get_user_by_id(self, user_id: str) -> Optional[Dict]:
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[Dict]:
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[Dict]:
        ...

    @abstractmethod
    def set_password_hash(self, user_id: str, password_hash: str, updated_at: str) -> None:
        ...

    @abstractmethod
    def add_entry(self, entry: Dict) -> None:
        ...

    @abstractmethod
    def list_entries(self, user_id: str) -> List[Dict]:
        """Entries of one user, oldest first."""

    @abstractmethod
    def get_entry(self, entry_id: str, user_id: str) -> Optional[Dict]:
        ...

    @abstractmethod
    def save_entry(self, entry: Dict) -> None:
        """Overwrite an existing entry (matched on id)."""

    @abstractmethod
    def remove_entry(self, entry_id: str, user_id: str) -> bool:
        ...

    def close(self) -> None:
        pass

    # --- users -----------------------------------------------------------
    def create_user(self, username: str, password: str, email: str = "") -> Dict:
        if self.get_user_by_username(username) is not None:
            raise UserAlreadyExistsError(f"User '{username}' already exists")
        if email and self.get_user_by_email(email) is not None:
            raise UserAlreadyExistsError(f"Email '{email}' is already registered")

        now = _now()
        user = {
            "id": _new_id(),
            "username": username,
            "email": email,
            "password_hash": generate_password_hash(password),
            "created_at": now,
            "updated_at": now,
        }
        self.add_user(user)
        logger.info("User '%s' created", username)
        return user

    def verify_credentials(self, username: str, password: str) -> Optional[Dict]:
        """Return the user when the password matches, else None."""
        user = self.get_user_by_username(username)
        if user is None or not check_password_hash(user["password_hash"], password):
            return None
        return user

    def reset_password(self, username: str, email: str, new_password: str) -> bool:
        """Reset a password when username and email belong to the same user."""
        user = self.get_user_by_username(username)
        if user is None or not email or user.get("email") != email:
            return False
        self.set_password_hash(user["id"], generate_password_hash(new_password), _now())
        logger.info("Password reset for user '%s'", username)
        return True

    # --- entries ---------------------------------------------------------
    def create_entry(
        self,
        user_id: str,
        name: str,
        secret: str,
        issuer: str = "",
        account_name: str = "",
        digits: int = DEFAULT_DIGITS,
        time_step: int = DEFAULT_TIME_STEP,
    ) -> Dict:
        now = _now()
        entry = {
            "id": _new_id(),
            "user_id": user_id,
            "name": name,
            "secret": secret,
            "issuer": issuer,
            "account_name": account_name,
            "digits": int(digits),
            "time_step": int(time_step),
            "created_at": now,
            "updated_at": now,
        }
        self.add_entry(entry)
        logger.info("Entry %s created for user %s", entry["id"], user_id)
        return entry

    def update_entry(self, entry_id: str, user_id: str, **fields) -> Dict:
        entry = self.get_entry(entry_id, user_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        for key in UPDATABLE_ENTRY_FIELDS:
            if key in fields and fields[key] is not None:
                entry[key] = fields[key]
        entry["updated_at"] = _now()
        self.save_entry(entry)
        return entry

    def delete_entry(self, entry_id: str, user_id: str) -> bool:
        removed = self.remove_entry(entry_id, user_id)
        if removed:
            logger.info("Entry %s deleted for user %s", entry_id, user_id)
        return removed
