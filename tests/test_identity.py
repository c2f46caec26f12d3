import pytest

from betdesk.errors import AuthenticationError, NotFoundError, ValidationError
from betdesk.identity import SIGNED_IN, SIGNED_OUT, TOKEN_REFRESHED, provider
from betdesk.models import User


@pytest.fixture
def events(app):
    seen = []
    sub = provider.on_auth_state_change(lambda event, session: seen.append(event))
    yield seen
    sub.unsubscribe()


class TestSignUp:
    def test_creates_unconfirmed_identity(self, app):
        user = provider.sign_up("  New@Example.com ", "secret123", {})
        assert user.email == "new@example.com"
        assert user.email_confirmed_at is None
        assert user.check_password("secret123")

    def test_admin_create_is_confirmed(self, app):
        user = provider.admin_create_user("x@example.com", "secret123")
        assert user.email_confirmed_at is not None

    @pytest.mark.parametrize("email, password", [("", "secret123"), ("a@b.com", ""), ("a@b.com", "12345")])
    def test_rejects_bad_input(self, app, email, password):
        with pytest.raises(ValidationError):
            provider.sign_up(email, password)

    def test_rejects_duplicates(self, app):
        provider.sign_up("dup@example.com", "secret123")
        with pytest.raises(ValidationError, match="already been registered"):
            provider.sign_up("DUP@example.com", "secret123")


class TestSessions:
    def test_sign_in_and_rehydrate(self, app, events):
        provider.sign_up("me@example.com", "secret123")
        session = provider.sign_in_with_password("me@example.com", "secret123")
        assert events == [SIGNED_IN]

        again = provider.get_session(session.access_token)
        assert again.user_id == session.user_id
        assert provider.get_user(session.access_token).email == "me@example.com"

    def test_wrong_password(self, app):
        provider.sign_up("me@example.com", "secret123")
        with pytest.raises(AuthenticationError):
            provider.sign_in_with_password("me@example.com", "nope-nope")

    def test_sign_out_kills_issued_tokens(self, app, events):
        provider.sign_up("me@example.com", "secret123")
        first = provider.sign_in_with_password("me@example.com", "secret123")
        second = provider.sign_in_with_password("me@example.com", "secret123")

        provider.sign_out(first)
        assert events[-1] == SIGNED_OUT
        assert provider.get_session(first.access_token) is None
        assert provider.get_user(second.access_token) is None

    def test_sign_out_ends_cookie_sessions(self, app):
        user = provider.sign_up("me@example.com", "secret123")
        cookie_id = user.get_id()
        assert provider.load_cookie_user(cookie_id) is user

        provider.sign_out(provider.session_for(user))
        assert provider.load_cookie_user(cookie_id) is None
        assert provider.load_cookie_user(user.get_id()) is user
        assert provider.load_cookie_user(user.id) is None

    def test_refresh(self, app, events):
        provider.sign_up("me@example.com", "secret123")
        session = provider.sign_in_with_password("me@example.com", "secret123")
        fresh = provider.refresh_session(session.access_token)
        assert fresh.user_id == session.user_id
        assert events[-1] == TOKEN_REFRESHED
        with pytest.raises(AuthenticationError):
            provider.refresh_session("not-a-token")

    def test_garbage_tokens(self, app):
        assert provider.get_session(None) is None
        assert provider.get_user("abc.def.ghi") is None

    def test_listener_errors_do_not_break_sign_in(self, app):
        def broken(event, session):
            raise RuntimeError("listener down")

        sub = provider.on_auth_state_change(broken)
        try:
            provider.sign_up("me@example.com", "secret123")
            assert provider.sign_in_with_password("me@example.com", "secret123")
        finally:
            sub.unsubscribe()


class TestAdminApi:
    def test_delete(self, app):
        user = provider.admin_create_user("gone@example.com", "secret123")
        provider.admin_delete_user(user.id)
        assert User.query.filter_by(email="gone@example.com").first() is None

    def test_delete_missing(self, app):
        with pytest.raises(NotFoundError):
            provider.admin_delete_user("missing")

    def test_password_change_revokes_tokens(self, app):
        user = provider.admin_create_user("pw@example.com", "secret123")
        token = provider.session_for(user).access_token
        provider.admin_update_user(user.id, password="another-one")
        assert provider.get_user(token) is None
        assert provider.sign_in_with_password("pw@example.com", "another-one")
