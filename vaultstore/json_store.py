"""
JSON file store: the whole database lives in one file.

    {"users": {id: user, ...}, "entries": {id: entry, ...}}

The file is read on every call and rewritten on every change, which is
fine for a handful of users.
"""

import json
import os
import threading
from typing import Dict, List, Optional

from .base import Store
from .exceptions import StorageError, UserAlreadyExistsError, UserNotFoundError

USER_FILE = "authvault.json"


class JsonFileStore(Store):
    def __init__(self, path: str = USER_FILE):
        self.path = path
        self._lock = threading.RLock()

    def _load(self) -> Dict:
        if not os.path.exists(self.path):
            return {"users": {}, "entries": {}}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        data.setdefault("users", {})
        data.setdefault("entries", {})
        return data

    def _save(self, data: Dict) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    # --- users -----------------------------------------------------------
    def add_user(self, user):
        with self._lock:
            data = self._load()
            if any(u["username"] == user["username"] for u in data["users"].values()):
                raise UserAlreadyExistsError(f"User '{user['username']}' already exists")
            data["users"][user["id"]] = user
            self._save(data)

    def get_user_by_id(self, user_id) -> Optional[Dict]:
        with self._lock:
            return self._load()["users"].get(user_id)

    def get_user_by_username(self, username) -> Optional[Dict]:
        return self._find_user("username", username)

    def get_user_by_email(self, email) -> Optional[Dict]:
        return self._find_user("email", email)

    def _find_user(self, field, value):
        with self._lock:
            for user in self._load()["users"].values():
                if user.get(field) == value:
                    return user
        return None

    def set_password_hash(self, user_id, password_hash, updated_at):
        with self._lock:
            data = self._load()
            user = data["users"].get(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            user["password_hash"] = password_hash
            user["updated_at"] = updated_at
            self._save(data)

    # --- entries ---------------------------------------------------------
    def add_entry(self, entry):
        with self._lock:
            data = self._load()
            data["entries"][entry["id"]] = entry
            self._save(data)

    def list_entries(self, user_id) -> List[Dict]:
        with self._lock:
            entries = [e for e in self._load()["entries"].values() if e["user_id"] == user_id]
        return sorted(entries, key=lambda e: e["created_at"])

    def get_entry(self, entry_id, user_id) -> Optional[Dict]:
        with self._lock:
            entry = self._load()["entries"].get(entry_id)
        if entry is None or entry["user_id"] != user_id:
            return None
        return entry

    def save_entry(self, entry):
        self.add_entry(entry)

    def remove_entry(self, entry_id, user_id) -> bool:
        with self._lock:
            data = self._load()
            entry = data["entries"].get(entry_id)
            if entry is None or entry["user_id"] != user_id:
                return False
            del data["entries"][entry_id]
            self._save(data)
            return True
