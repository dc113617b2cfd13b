"""In-process store, mostly for tests; nothing survives a restart."""

import copy
import threading
from typing import Dict, List, Optional

from .base import Store
from .exceptions import UserAlreadyExistsError, UserNotFoundError


class MemoryStore(Store):
    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[str, Dict] = {}
        self._entries: Dict[str, Dict] = {}

    def add_user(self, user):
        with self._lock:
            for existing in self._users.values():
                if existing["username"] == user["username"]:
                    raise UserAlreadyExistsError(f"User '{user['username']}' already exists")
            self._users[user["id"]] = copy.deepcopy(user)

    def get_user_by_id(self, user_id) -> Optional[Dict]:
        with self._lock:
            user = self._users.get(user_id)
            return copy.deepcopy(user) if user else None

    def get_user_by_username(self, username) -> Optional[Dict]:
        return self._find_user("username", username)

    def get_user_by_email(self, email) -> Optional[Dict]:
        return self._find_user("email", email)

    def _find_user(self, field, value):
        with self._lock:
            for user in self._users.values():
                if user.get(field) == value:
                    return copy.deepcopy(user)
        return None

    def set_password_hash(self, user_id, password_hash, updated_at):
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            user["password_hash"] = password_hash
            user["updated_at"] = updated_at

    def add_entry(self, entry):
        with self._lock:
            self._entries[entry["id"]] = copy.deepcopy(entry)

    def list_entries(self, user_id) -> List[Dict]:
        with self._lock:
            entries = [copy.deepcopy(e) for e in self._entries.values() if e["user_id"] == user_id]
        return sorted(entries, key=lambda e: e["created_at"])

    def get_entry(self, entry_id, user_id) -> Optional[Dict]:
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None or entry["user_id"] != user_id:
                return None
            return copy.deepcopy(entry)

    def save_entry(self, entry):
        with self._lock:
            self._entries[entry["id"]] = copy.deepcopy(entry)

    def remove_entry(self, entry_id, user_id) -> bool:
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None or entry["user_id"] != user_id:
                return False
            del self._entries[entry_id]
            return True
