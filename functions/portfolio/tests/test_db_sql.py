import time
import unittest

from portfolio.db import (
    ContactMessageRecord,
    PlanRecord,
    ProfileRecord,
    ProjectRecord,
    ProjectRow,
    SqlDbClient,
)
from portfolio.errors import BackendError, InputError
from portfolio.seed import seed_demo_data
from shared.types import PlanInterval, SubscriptionStatus, UserRole, UserStatus


class SqlDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def setUp(self):
        self.db = SqlDbClient("sqlite+pysqlite:///:memory:")

    def test_ping(self):
        self.assertTrue(self.db.ping())

    def test_profile_roundtrip_and_update(self):
        self.db.create_profile(
            ProfileRecord(id="u1", email="ada@example.com", username="ada")
        )
        fetched = self.db.get_profile("u1")
        self.assertEqual(fetched.username, "ada")
        self.assertEqual(fetched.role, UserRole.USER)

        updated = self.db.update_profile(
            "u1", role=UserRole.ADMIN, status=UserStatus.BANNED, first_name="Ada"
        )
        self.assertTrue(updated.is_admin)
        self.assertEqual(updated.status, UserStatus.BANNED)
        self.assertEqual(updated.display_name, "Ada")
        self.assertIsNone(self.db.update_profile("missing", first_name="x"))

    def test_username_is_unique_ignoring_case(self):
        self.db.create_profile(ProfileRecord(id="u1", email="a@example.com", username="ada"))
        with self.assertRaises(InputError):
            self.db.create_profile(
                ProfileRecord(id="u2", email="b@example.com", username="ADA")
            )
        self.db.create_profile(ProfileRecord(id="u2", email="b@example.com", username="bob"))
        with self.assertRaises(InputError):
            self.db.update_profile("u2", username="Ada")
        self.assertEqual(self.db.get_profile_by_username("Ada").id, "u1")

    def test_update_rejects_unknown_fields(self):
        self.db.create_profile(ProfileRecord(id="u1", email="a@example.com", username="ada"))
        with self.assertRaises(ValueError):
            self.db.update_profile("u1", password="nope")

    def test_delete_profile_removes_subscriptions(self):
        self.db.create_profile(ProfileRecord(id="u1", email="a@example.com", username="ada"))
        plan = self.db.create_plan(PlanRecord(name="Pro", description="", price=19))
        self.db.create_subscription("u1", plan.id, time.time() + 60)
        self.assertTrue(self.db.delete_profile("u1"))
        self.assertIsNone(self.db.get_profile("u1"))
        self.assertEqual(self.db.list_subscriptions(), [])
        self.assertFalse(self.db.delete_profile("u1"))

    def test_projects_newest_first_and_downloads(self):
        now = time.time()
        old = self.db.create_project(
            ProjectRecord(
                title="Old", description="d", category="Web", tags=["a"], created_at=now - 10
            )
        )
        new = self.db.create_project(
            ProjectRecord(title="New", description="d", category="Web", created_at=now)
        )
        self.assertEqual([p.id for p in self.db.list_projects()], [new.id, old.id])

        self.db.increment_downloads(old.id)
        self.db.increment_downloads(old.id)
        self.assertEqual(self.db.get_project(old.id).downloads, 2)
        self.assertEqual(self.db.get_project(old.id).tags, ["a"])

        updated = self.db.update_project(old.id, title="Older", is_premium=True)
        self.assertEqual(updated.title, "Older")
        self.assertTrue(updated.is_premium)
        self.assertTrue(self.db.delete_project(old.id))
        self.assertIsNone(self.db.get_project(old.id))

    def test_plans_by_price(self):
        self.db.create_plan(PlanRecord(name="Pro", description="", price=19))
        self.db.create_plan(PlanRecord(name="Free", description="", price=0))
        yearly = self.db.create_plan(
            PlanRecord(name="Annual", description="", price=190, interval=PlanInterval.YEAR)
        )
        self.assertEqual([p.name for p in self.db.list_plans()], ["Free", "Pro", "Annual"])
        self.assertEqual(self.db.get_plan(yearly.id).interval, PlanInterval.YEAR)

        self.db.update_plan(yearly.id, price=180, features=["All"])
        self.assertEqual(self.db.get_plan(yearly.id).features, ["All"])
        self.assertTrue(self.db.delete_plan(yearly.id))

    def test_subscriptions(self):
        plan = self.db.create_plan(PlanRecord(name="Pro", description="", price=19))
        first = self.db.create_subscription("u1", plan.id, time.time() + 60)
        self.assertEqual(self.db.get_active_subscription("u1").id, first.id)

        self.db.cancel_subscription(first.id)
        self.assertIsNone(self.db.get_active_subscription("u1"))
        cancelled = self.db.list_subscriptions(status=SubscriptionStatus.CANCELLED)
        self.assertEqual([s.id for s in cancelled], [first.id])
        self.assertIsNotNone(cancelled[0].cancelled_at)
        self.assertEqual(self.db.list_subscriptions(status=SubscriptionStatus.ACTIVE), [])

    def test_contact_messages_and_subscribers(self):
        self.db.save_contact_message(
            ContactMessageRecord(
                name="Ada", email="ada@example.com", subject="Hi", message="Hello"
            )
        )
        self.assertEqual(self.db.list_contact_messages()[0].subject, "Hi")
        self.assertEqual(self.db.count_contact_messages(), 1)

        self.db.add_subscriber("Fan@Example.com")
        self.assertIsNotNone(self.db.get_subscriber("fan@example.com"))
        with self.assertRaises(InputError):
            self.db.add_subscriber("fan@example.com")
        self.assertEqual(self.db.count_subscribers(), 1)

    def test_database_errors_become_backend_errors(self):
        ProjectRow.__table__.drop(self.db.engine)
        with self.assertRaises(BackendError) as ctx:
            self.db.list_projects()
        self.assertEqual(ctx.exception.message, "The database is unavailable")

    def test_seed_only_fills_empty_tables(self):
        self.assertEqual(seed_demo_data(self.db), (6, 3))
        self.assertEqual(seed_demo_data(self.db), (0, 0))
        self.assertEqual(len(self.db.list_projects()), 6)


if __name__ == "__main__":
    unittest.main()
