"""
Session Holder for PT Rewards
Tracks which user is signed in, backed by a durable key-value slot
"""

import json
import os
import logging

from flask import session as flask_session

from ptrewards.services.key_codec import identifier_to_key

logger = logging.getLogger(__name__)

class SessionStorage:
    """Key-value slot interface used by SessionHolder"""

    def get(self, key):
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError

    def remove(self, key):
        raise NotImplementedError

class MemorySessionStorage(SessionStorage):
    def __init__(self, initial=None):
        self.values = dict(initial or {})

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value

    def remove(self, key):
        self.values.pop(key, None)

class FileSessionStorage(SessionStorage):
    """
    JSON file on local disk; survives process restarts
    """

    def __init__(self, path):
        self.path = os.path.expanduser(path)

    def _load(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {str(e)}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f)

    def get(self, key):
        return self._load().get(key)

    def set(self, key, value):
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key):
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

class FlaskSessionStorage(SessionStorage):
    """
    Signed Flask session cookie, kept across browser restarts
    """

    def get(self, key):
        return flask_session.get(key)

    def set(self, key, value):
        flask_session.permanent = True
        flask_session[key] = value

    def remove(self, key):
        flask_session.pop(key, None)

class SessionHolder:
    def __init__(self, storage, key='currentUserEmail'):
        self.storage = storage
        self.key = key

    def set_current(self, identifier):
        self.storage.set(self.key, str(identifier or '').strip())

    def get_current(self):
        return str(self.storage.get(self.key) or '').strip()

    def clear(self):
        self.storage.remove(self.key)

    def is_authenticated(self):
        return bool(self.current_key())

    def current_key(self):
        """Storage key of the signed-in user, or '' when nobody is"""
        return identifier_to_key(self.get_current())
