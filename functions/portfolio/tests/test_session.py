import unittest
from types import SimpleNamespace
from unittest import mock

from portfolio.auth import InMemoryAuthClient
from portfolio.db import InMemoryDbClient, ProfileRecord
from portfolio.errors import BackendError
from portfolio.session import (
    FLASH_KEY,
    SESSION_KEY,
    SessionMirror,
    ensure_profile,
    flash,
    pop_flashes,
)
from shared.types import AuthEvent, FlashLevel, UserRole


def fake_request():
    return SimpleNamespace(session={})


class SessionMirrorTests(unittest.TestCase):
    def setUp(self):
        self.auth = InMemoryAuthClient()
        self.user = self.auth.sign_up("ada@example.com", "Secret123", {"username": "ada"})
        self.request = fake_request()

    def test_restore_without_stored_session(self):
        mirror = SessionMirror(self.request, self.auth)
        self.assertIsNone(mirror.restore())
        self.assertIsNone(mirror.access_token)

    def test_sign_in_is_mirrored_with_notification(self):
        mirror = SessionMirror(self.request, self.auth)
        mirror.restore()
        session = self.auth.sign_in_with_password("ada@example.com", "Secret123")
        mirror.apply(AuthEvent.SIGNED_IN, session)

        stored = self.request.session[SESSION_KEY]
        self.assertEqual(stored["access_token"], session.access_token)
        self.assertEqual(stored["user_id"], self.user.id)
        self.assertEqual(
            pop_flashes(self.request),
            [{"level": "success", "message": "Signed in successfully!"}],
        )

    def test_initial_load_does_not_notify(self):
        session = self.auth.sign_in_with_password("ada@example.com", "Secret123")
        mirror = SessionMirror(self.request, self.auth)
        mirror.apply(AuthEvent.SIGNED_IN, session)
        self.assertEqual(pop_flashes(self.request), [])

        restored = SessionMirror(self.request, self.auth).restore()
        self.assertEqual(restored.id, self.user.id)
        self.assertEqual(pop_flashes(self.request), [])

    def test_restore_refreshes_expired_token(self):
        session = self.auth.sign_in_with_password("ada@example.com", "Secret123")
        SessionMirror(self.request, self.auth).apply(AuthEvent.SIGNED_IN, session)
        self.auth.sessions.clear()

        mirror = SessionMirror(self.request, self.auth)
        self.assertEqual(mirror.restore().id, self.user.id)
        self.assertNotEqual(mirror.access_token, session.access_token)

    def test_restore_clears_unrecoverable_session(self):
        self.request.session[SESSION_KEY] = {
            "access_token": "bogus",
            "refresh_token": "bogus",
            "expires_at": 0,
            "user_id": "nobody",
        }
        mirror = SessionMirror(self.request, self.auth)
        self.assertIsNone(mirror.restore())
        self.assertNotIn(SESSION_KEY, self.request.session)

    def test_restore_keeps_cookie_when_backend_is_down(self):
        self.request.session[SESSION_KEY] = {"access_token": "t", "refresh_token": "r"}
        auth = mock.Mock()
        auth.get_user.side_effect = BackendError("down")
        mirror = SessionMirror(self.request, auth)
        self.assertIsNone(mirror.restore())
        self.assertIn(SESSION_KEY, self.request.session)

    def test_sign_out_clears_session(self):
        session = self.auth.sign_in_with_password("ada@example.com", "Secret123")
        mirror = SessionMirror(self.request, self.auth)
        mirror.restore()
        mirror.apply(AuthEvent.SIGNED_IN, session)
        pop_flashes(self.request)

        mirror.apply(AuthEvent.SIGNED_OUT, None)
        self.assertIsNone(mirror.user)
        self.assertNotIn(SESSION_KEY, self.request.session)
        self.assertEqual(
            pop_flashes(self.request)[0]["message"], "Signed out successfully!"
        )

    def test_flash_levels(self):
        flash(self.request, "Oops", FlashLevel.ERROR)
        flash(self.request, "Saved")
        self.assertEqual(len(self.request.session[FLASH_KEY]), 2)
        self.assertEqual(
            [f["level"] for f in pop_flashes(self.request)], ["error", "success"]
        )
        self.assertEqual(pop_flashes(self.request), [])


class EnsureProfileTests(unittest.TestCase):
    def setUp(self):
        self.auth = InMemoryAuthClient()
        self.db = InMemoryDbClient()

    def test_creates_profile_from_metadata(self):
        user = self.auth.sign_up(
            "ada@example.com", "Secret123", {"username": "ada", "first_name": "Ada"}
        )
        profile = ensure_profile(self.db, user)
        self.assertEqual(profile.username, "ada")
        self.assertEqual(profile.first_name, "Ada")
        self.assertEqual(profile.role, UserRole.USER)
        self.assertIs(ensure_profile(self.db, user), profile)

    def test_admin_emails_grant_admin_role(self):
        user = self.auth.sign_up("boss@example.com", "Secret123", {})
        profile = ensure_profile(self.db, user, {"boss@example.com"})
        self.assertTrue(profile.is_admin)

    def test_username_collision_gets_suffix(self):
        self.db.create_profile(ProfileRecord(id="other", email="o@example.com", username="ada"))
        user = self.auth.sign_up("ada@example.com", "Secret123", {"username": "ada"})
        profile = ensure_profile(self.db, user)
        self.assertEqual(profile.username, f"ada_{user.id[:6]}")


if __name__ == "__main__":
    unittest.main()
