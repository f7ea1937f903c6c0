from flask import Flask

from ptrewards.services.session_holder import (
    SessionHolder,
    MemorySessionStorage,
    FileSessionStorage,
    FlaskSessionStorage,
)

class TestSessionHolder:

    def test_set_get_and_clear(self):
        holder = SessionHolder(MemorySessionStorage())

        assert holder.get_current() == ''
        assert holder.is_authenticated() is False

        holder.set_current('  Jane.Doe@Example.com ')
        assert holder.get_current() == 'Jane.Doe@Example.com'
        assert holder.current_key() == 'jane,doe@example,com'
        assert holder.is_authenticated() is True

        holder.clear()
        assert holder.get_current() == ''
        assert holder.is_authenticated() is False

    def test_uses_configured_slot_name(self):
        storage = MemorySessionStorage()
        SessionHolder(storage, key='nhg_current_user_email').set_current('a@b.com')
        assert storage.values == {'nhg_current_user_email': 'a@b.com'}

    def test_blank_identifier_is_not_authenticated(self):
        holder = SessionHolder(MemorySessionStorage({'currentUserEmail': '   '}))
        assert holder.is_authenticated() is False

class TestFileSessionStorage:

    def test_survives_a_new_holder(self, tmp_path):
        path = tmp_path / 'nested' / 'session.json'

        SessionHolder(FileSessionStorage(str(path))).set_current('a@b.com')
        reloaded = SessionHolder(FileSessionStorage(str(path)))

        assert reloaded.get_current() == 'a@b.com'

        reloaded.clear()
        assert SessionHolder(FileSessionStorage(str(path))).get_current() == ''

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / 'session.json'
        path.write_text('{not json')

        assert FileSessionStorage(str(path)).get('currentUserEmail') is None

class TestFlaskSessionStorage:

    def test_reads_and_writes_the_cookie_session(self):
        app = Flask(__name__)
        app.config['SECRET_KEY'] = 'test'

        with app.test_request_context('/'):
            from flask import session
            holder = SessionHolder(FlaskSessionStorage())

            holder.set_current('a@b.com')
            assert session['currentUserEmail'] == 'a@b.com'
            assert session.permanent is True

            holder.clear()
            assert 'currentUserEmail' not in session
