import pytest

from ptrewards.services.account_service import upgrade_user_record, SCHEMA_VERSION
from ptrewards.utils.error_handler import (
    ValidationError,
    NotAuthenticatedError,
    AccountExistsError,
    AccountNotFoundError,
    InvalidCredentialError,
)

from conftest import make_user

class TestSignUp:

    def test_fresh_signup_defaults(self, accounts, store, session):
        """Blank name falls back to the local part of the email"""
        result = accounts.sign_up('A@B.com', 'pass1234', '')

        assert result == {'email': 'a@b.com', 'key': 'a@b,com'}

        user = store.data['users']['a@b,com']
        assert user['profile']['displayName'] == 'a'
        assert user['profile']['role'] == 'user'
        assert user['profile']['email'] == 'a@b.com'
        assert user['points'] == 50
        assert user['password'] == 'pass1234'
        assert user['schemaVersion'] == SCHEMA_VERSION
        assert session.get_current() == 'a@b.com'

    def test_signup_uses_given_name(self, accounts, store):
        accounts.sign_up('jo@example.com', 'secret', '  Jo Smith ')
        assert store.data['users']['jo@example,com']['profile']['displayName'] == 'Jo Smith'

    @pytest.mark.parametrize('email,password', [
        ('', 'pass1234'),
        ('   ', 'pass1234'),
        ('a@b.com', 'abc'),
        ('a@b.com', None),
    ])
    def test_signup_validation(self, accounts, store, session, email, password):
        with pytest.raises(ValidationError):
            accounts.sign_up(email, password, 'x')

        assert store.writes == []
        assert session.is_authenticated() is False

    def test_signup_existing_account(self, accounts, store, session):
        store.data['users'] = {'a@b,com': make_user('a@b.com')}

        with pytest.raises(AccountExistsError):
            accounts.sign_up('A@b.com', 'pass1234')

        assert store.writes == []
        assert session.is_authenticated() is False

class TestLogIn:

    @pytest.fixture(autouse=True)
    def existing_account(self, accounts):
        accounts.sign_up('A@B.com', 'pass1234', '')
        accounts.log_out()

    def test_login_success_sets_session(self, accounts, session):
        assert accounts.log_in(' A@B.com ', 'pass1234') == {'email': 'a@b.com', 'key': 'a@b,com'}
        assert session.get_current() == 'a@b.com'

    def test_login_wrong_password(self, accounts, session):
        with pytest.raises(InvalidCredentialError):
            accounts.log_in('A@B.com', 'wrong')
        assert session.is_authenticated() is False

    def test_password_comparison_is_case_sensitive(self, accounts):
        with pytest.raises(InvalidCredentialError):
            accounts.log_in('a@b.com', 'PASS1234')

    def test_login_unknown_account(self, accounts):
        with pytest.raises(AccountNotFoundError):
            accounts.log_in('nouser@x.com', 'anything')

    @pytest.mark.parametrize('email,password', [('', 'pass1234'), ('a@b.com', '')])
    def test_login_requires_both_fields(self, accounts, email, password):
        with pytest.raises(ValidationError):
            accounts.log_in(email, password)

    def test_logout_clears_session_without_store_calls(self, accounts, session, store):
        accounts.log_in('a@b.com', 'pass1234')
        store.reset_calls()

        accounts.log_out()

        assert session.is_authenticated() is False
        assert store.calls == []

class TestEnsureAccountExists:

    def test_requires_session(self, accounts):
        with pytest.raises(NotAuthenticatedError):
            accounts.ensure_account_exists()

    def test_repairs_missing_profile_without_touching_password(self, accounts, store, session):
        store.data['users'] = {'half@x,com': {'password': 'keepme'}}
        session.set_current('half@x.com')

        applied = accounts.ensure_account_exists()

        user = store.data['users']['half@x,com']
        assert set(applied) == {'profile', 'points', 'schemaVersion'}
        assert user['password'] == 'keepme'
        assert user['profile']['displayName'] == 'half'
        assert user['profile']['role'] == 'user'
        assert user['points'] == 50

    def test_adds_missing_role(self, accounts, store, session):
        record = make_user('old@x.com')
        del record['profile']['role']
        store.data['users'] = {'old@x,com': record}
        session.set_current('old@x.com')

        accounts.ensure_account_exists()

        assert store.data['users']['old@x,com']['profile']['role'] == 'user'

    def test_missing_points_initialized(self, accounts, store, session):
        record = make_user('p@x.com')
        del record['points']
        store.data['users'] = {'p@x,com': record}
        session.set_current('p@x.com')

        accounts.ensure_account_exists()

        assert store.data['users']['p@x,com']['points'] == 50

    def test_partial_account_balance_is_reset(self, accounts, store, session):
        record = make_user('rich@x.com', points=900)
        del record['profile']
        store.data['users'] = {'rich@x,com': record}
        session.set_current('rich@x.com')

        applied = accounts.ensure_account_exists()

        assert applied['points'] == 50
        assert store.data['users']['rich@x,com']['points'] == 50
        assert store.data['users']['rich@x,com']['password'] == 'pass1234'

    def test_balance_kept_when_profile_exists(self, accounts, store, session):
        store.data['users'] = {'rich@x,com': make_user('rich@x.com', points=900)}
        session.set_current('rich@x.com')

        accounts.ensure_account_exists()

        assert store.data['users']['rich@x,com']['points'] == 900

    def test_current_record_is_not_written(self, accounts, store, signed_in_user):
        store.reset_calls()

        assert accounts.ensure_account_exists() == {}
        assert store.writes == []

    def test_second_call_is_a_no_op(self, accounts, store, session):
        store.data['users'] = {'half@x,com': {'password': 'keepme'}}
        session.set_current('half@x.com')

        accounts.ensure_account_exists()
        store.reset_calls()
        accounts.ensure_account_exists()

        assert store.writes == []

class TestUpgradeUserRecord:

    def test_version_one_profile_is_renamed(self):
        record = {
            'profile': {'email': 'a@b.com', 'name': 'Ann', 'createdAt': 1},
            'password': 'pw',
            'points': 75
        }

        patch = upgrade_user_record(record, 'a@b.com', 50, 99)

        assert patch == {
            'profile': {'email': 'a@b.com', 'name': 'Ann', 'displayName': 'Ann', 'createdAt': 1, 'role': 'user'},
            'schemaVersion': SCHEMA_VERSION
        }

    def test_missing_record(self):
        patch = upgrade_user_record(None, 'new@b.com', 50, 99)

        assert patch['profile'] == {'email': 'new@b.com', 'displayName': 'new', 'createdAt': 99, 'role': 'user'}
        assert patch['points'] == 50
        assert 'password' not in patch

    def test_only_version_stamp_missing(self):
        record = make_user('a@b.com')
        del record['schemaVersion']

        assert upgrade_user_record(record, 'a@b.com', 50, 99) == {'schemaVersion': SCHEMA_VERSION}

class TestProfileAndRole:

    def test_get_profile_requires_session(self, accounts):
        with pytest.raises(NotAuthenticatedError):
            accounts.get_profile()

    def test_get_profile(self, accounts, signed_in_user):
        assert accounts.get_profile()['email'] == 'user@example.com'

    def test_get_profile_absent(self, accounts, session):
        session.set_current('ghost@x.com')
        assert accounts.get_profile() is None

    def test_current_identity(self, accounts, signed_in_user):
        assert accounts.current_identity() == {'email': 'user@example.com', 'key': signed_in_user}

    def test_is_admin_without_session(self, accounts, store):
        assert accounts.is_admin() is False
        assert store.calls == []

    def test_is_admin_regular_user(self, accounts, signed_in_user):
        assert accounts.is_admin() is False

    def test_is_admin_case_insensitive(self, accounts, store, session):
        store.data['users'] = {'boss@x,com': make_user('boss@x.com', role='ADMIN')}
        session.set_current('boss@x.com')

        assert accounts.is_admin() is True
