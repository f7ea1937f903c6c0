"""
Shared fixtures for the PT Rewards test suite
"""

import copy

import pytest

from ptrewards.config import Config
from ptrewards.services.record_store import RecordStore
from ptrewards.services.session_holder import SessionHolder, MemorySessionStorage
from ptrewards.services.account_service import AccountService
from ptrewards.services.ledger_service import LedgerService
from ptrewards.services.redemption_service import RedemptionService
from ptrewards.services.admin_gateway import AdminGateway
from ptrewards.services.leaderboard_service import LeaderboardService


def _prune(value):
    # The database never stores nulls or empty objects
    if isinstance(value, dict):
        pruned = {}
        for k, v in value.items():
            v = _prune(v)
            if v is not None:
                pruned[k] = v
        return pruned or None
    return value


class FakeRecordStore(RecordStore):
    """In-memory stand-in for the Realtime Database tree"""

    def __init__(self, data=None):
        self.data = _prune(copy.deepcopy(data or {})) or {}
        self.calls = []

    @staticmethod
    def _parts(path):
        return [p for p in str(path).strip('/').split('/') if p]

    def _read(self, parts):
        node = self.data
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return copy.deepcopy(node)

    def _write(self, parts, value):
        if not parts:
            self.data = value if isinstance(value, dict) else {}
        else:
            node = self.data
            for part in parts[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
            node[parts[-1]] = value
        self.data = _prune(self.data) or {}

    def get(self, path):
        self.calls.append(('get', path))
        return self._read(self._parts(path))

    def put(self, path, value):
        self.calls.append(('put', path, copy.deepcopy(value)))
        self._write(self._parts(path), copy.deepcopy(value))
        return value

    def patch(self, path, value):
        self.calls.append(('patch', path, copy.deepcopy(value)))
        parts = self._parts(path)
        current = self._read(parts)
        merged = current if isinstance(current, dict) else {}
        merged.update(copy.deepcopy(value))
        self._write(parts, merged)
        return value

    @property
    def writes(self):
        return [c for c in self.calls if c[0] != 'get']

    def reset_calls(self):
        self.calls = []


class FakeClock:
    """Epoch milliseconds advancing by one on every call"""

    def __init__(self, start=1700000000000):
        self.now = start

    def __call__(self):
        self.now += 1
        return self.now


def make_user(email, points=50, role='user', password='pass1234', **extra):
    """Stored user record as signup writes it"""
    record = {
        'profile': {
            'email': email,
            'displayName': email.split('@')[0],
            'createdAt': 1690000000000,
            'role': role
        },
        'password': password,
        'points': points,
        'schemaVersion': 2
    }
    record.update(extra)
    return record


@pytest.fixture
def config():
    return Config()

@pytest.fixture
def store():
    return FakeRecordStore()

@pytest.fixture
def session():
    return SessionHolder(MemorySessionStorage())

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def accounts(store, session, config, clock):
    return AccountService(store, session, config, clock=clock)

@pytest.fixture
def ledger(store, session, config, clock):
    return LedgerService(store, session, config, clock=clock)

@pytest.fixture
def redemptions(store, session, config, clock):
    return RedemptionService(store, session, config, clock=clock)

@pytest.fixture
def admin(accounts, ledger, redemptions):
    return AdminGateway(accounts, ledger, redemptions)

@pytest.fixture
def leaderboard(store, session):
    return LeaderboardService(store, session)

@pytest.fixture
def signed_in_user(store, session):
    """A stored user with 50 points who is currently signed in"""
    store.data.setdefault('users', {})['user@example,com'] = make_user('user@example.com')
    session.set_current('user@example.com')
    return 'user@example,com'

@pytest.fixture
def signed_in_admin(store, session):
    """A stored admin who is currently signed in"""
    store.data.setdefault('users', {})['boss@example,com'] = make_user('boss@example.com', role='admin')
    session.set_current('boss@example.com')
    return 'boss@example,com'
