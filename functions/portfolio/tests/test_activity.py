import unittest

from portfolio.activity import ActivityLog
from portfolio.auth import InMemoryAuthClient
from shared.types import AuthEvent


class ActivityLogTests(unittest.TestCase):
    def setUp(self):
        self.auth = InMemoryAuthClient()
        self.auth.sign_up("ada@example.com", "Secret123", {})
        self.log = ActivityLog(max_entries=3)
        self.log.attach(self.auth)

    def tearDown(self):
        self.log.detach()

    def test_records_auth_events_newest_first(self):
        session = self.auth.sign_in_with_password("ada@example.com", "Secret123")
        self.auth.sign_out(session.access_token)
        entries = self.log.recent()
        self.assertEqual(
            [e.description for e in entries],
            ["A user signed out", "ada@example.com signed in"],
        )
        self.assertEqual(entries[1].user_id, session.user.id)

    def test_token_refresh_is_not_recorded(self):
        session = self.auth.sign_in_with_password("ada@example.com", "Secret123")
        self.auth.refresh_session(session.refresh_token)
        self.assertEqual([e.event for e in self.log.recent()], [AuthEvent.SIGNED_IN])

    def test_bounded(self):
        for _ in range(5):
            self.auth.sign_in_with_password("ada@example.com", "Secret123")
        self.assertEqual(len(self.log.recent(limit=10)), 3)

    def test_detach_stops_recording(self):
        self.log.detach()
        self.auth.sign_in_with_password("ada@example.com", "Secret123")
        self.assertEqual(self.log.recent(), [])


if __name__ == "__main__":
    unittest.main()
