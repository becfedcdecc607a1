import time
import unittest

import site_fixtures
from fastapi.testclient import TestClient

from portfolio import subscriptions
from portfolio.app import create_app
from portfolio.auth import InMemoryAuthClient
from portfolio.db import ContactMessageRecord, InMemoryDbClient, PlanRecord, ProfileRecord
from portfolio.errors import InputError
from portfolio.seed import seed_demo_data
from shared.types import PlanInterval, SubscriptionStatus, UserRole
from site_fixtures import create_user, log_in, project_by_title

DAY = 24 * 3600


def plan_named(db, name):
    return next(plan for plan in db.list_plans() if plan.name == name)


class SubscriptionLogicTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        seed_demo_data(self.db)
        self.profile = self.db.create_profile(
            ProfileRecord(id="u1", email="u1@example.com", username="u1")
        )

    def test_plans_are_listed_by_ascending_price(self):
        self.assertEqual(
            [plan.name for plan in self.db.list_plans()], ["Free", "Pro", "Enterprise"]
        )

    def test_subscribe_sets_period_end(self):
        before = time.time()
        record = subscriptions.subscribe(self.db, "u1", plan_named(self.db, "Pro").id)
        self.assertEqual(record.status, SubscriptionStatus.ACTIVE)
        self.assertGreaterEqual(record.current_period_end, before + 30 * DAY)
        self.assertLess(record.current_period_end, time.time() + 30 * DAY + 1)

    def test_yearly_plan_period(self):
        plan = self.db.create_plan(
            PlanRecord(name="Annual", description="", price=120, interval=PlanInterval.YEAR)
        )
        record = subscriptions.subscribe(self.db, "u1", plan.id)
        self.assertGreaterEqual(record.current_period_end - record.started_at, 365 * DAY - 1)

    def test_subscribe_replaces_active_subscription(self):
        first = subscriptions.subscribe(self.db, "u1", plan_named(self.db, "Pro").id)
        second = subscriptions.subscribe(
            self.db, "u1", plan_named(self.db, "Enterprise").id
        )
        self.assertEqual(self.db.get_active_subscription("u1").id, second.id)
        self.assertEqual(
            self.db.subscriptions[first.id].status, SubscriptionStatus.CANCELLED
        )
        self.assertEqual(subscriptions.current_plan(self.db, "u1").name, "Enterprise")

    def test_subscribe_to_unknown_plan(self):
        with self.assertRaises(InputError):
            subscriptions.subscribe(self.db, "u1", "missing")

    def test_cancel(self):
        self.assertIsNone(subscriptions.cancel(self.db, "u1"))
        subscriptions.subscribe(self.db, "u1", plan_named(self.db, "Pro").id)
        self.assertIsNotNone(subscriptions.cancel(self.db, "u1"))
        self.assertIsNone(self.db.get_active_subscription("u1"))

    def test_premium_access(self):
        self.assertFalse(subscriptions.has_premium_access(self.db, None))
        self.assertFalse(subscriptions.has_premium_access(self.db, self.profile))

        subscriptions.subscribe(self.db, "u1", plan_named(self.db, "Free").id)
        self.assertFalse(subscriptions.has_premium_access(self.db, self.profile))

        subscriptions.subscribe(self.db, "u1", plan_named(self.db, "Pro").id)
        self.assertTrue(subscriptions.has_premium_access(self.db, self.profile))

        admin = ProfileRecord(
            id="a1", email="a@example.com", username="boss", role=UserRole.ADMIN
        )
        self.assertTrue(subscriptions.has_premium_access(self.db, admin))

    def test_dashboard_stats(self):
        auth = InMemoryAuthClient()
        auth.sign_up("u1@example.com", "Secret123", {})
        plan = self.db.create_plan(
            PlanRecord(name="Annual", description="", price=120, interval=PlanInterval.YEAR)
        )
        subscriptions.subscribe(self.db, "u1", plan_named(self.db, "Pro").id)
        subscriptions.subscribe(self.db, "u2", plan.id)
        self.db.add_subscriber("fan@example.com")
        self.db.increment_downloads(self.db.list_projects()[0].id)
        for n in range(101):
            self.db.save_contact_message(
                ContactMessageRecord(
                    name="Fan", email="fan@example.com", subject=f"Hi {n}", message="Hello"
                )
            )

        stats = subscriptions.dashboard_stats(self.db, auth)
        self.assertEqual(stats.total_users, 1)
        self.assertEqual(stats.total_projects, 6)
        self.assertEqual(stats.premium_projects, 3)
        self.assertEqual(stats.total_downloads, 1)
        self.assertEqual(stats.active_subscriptions, 2)
        self.assertEqual(stats.monthly_revenue, 29.0)
        self.assertEqual(stats.newsletter_subscribers, 1)
        self.assertEqual(stats.contact_messages, 101)


class PricingPageTests(unittest.TestCase):
    def setUp(self):
        self.db, self.auth = site_fixtures.reset_backends()
        self.client = TestClient(create_app())
        self.user = create_user(self.auth, self.db)
        self.pro = plan_named(self.db, "Pro")

    def test_pricing_lists_plans(self):
        response = self.client.get("/pricing")
        self.assertEqual(response.status_code, 200)
        self.assertLess(response.text.index("Free"), response.text.index("Enterprise"))
        self.assertIn("$19", response.text)

    def test_pricing_empty_state(self):
        for plan in self.db.list_plans():
            self.db.delete_plan(plan.id)
        response = self.client.get("/pricing")
        self.assertIn("No plans available", response.text)

    def test_choosing_a_plan_requires_login(self):
        response = self.client.post(f"/pricing/{self.pro.id}", follow_redirects=False)
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/login?next=%2Fpricing")
        page = self.client.get(response.headers["location"])
        self.assertIn("Please log in to subscribe to this plan", page.text)

    def test_choosing_a_plan_leads_to_subscription_page(self):
        log_in(self.client)
        response = self.client.post(f"/pricing/{self.pro.id}", follow_redirects=False)
        self.assertEqual(response.headers["location"], f"/subscription?plan={self.pro.id}")

        page = self.client.get(response.headers["location"])
        self.assertIn("Confirm subscription", page.text)

    def test_subscribe_and_cancel(self):
        log_in(self.client)
        response = self.client.post("/subscription", data={"plan_id": self.pro.id})
        self.assertIn("You are now subscribed to the Pro plan!", response.text)
        self.assertEqual(subscriptions.current_plan(self.db, self.user.id).name, "Pro")

        pricing = self.client.get("/pricing")
        self.assertIn("Current plan", pricing.text)

        response = self.client.post("/subscription/cancel")
        self.assertIn("Your subscription has been cancelled", response.text)
        self.assertIsNone(self.db.get_active_subscription(self.user.id))

    def test_subscription_page_requires_login(self):
        response = self.client.get("/subscription", follow_redirects=False)
        self.assertEqual(response.headers["location"], "/login?next=%2Fsubscription")


class DownloadGateTests(unittest.TestCase):
    def setUp(self):
        self.db, self.auth = site_fixtures.reset_backends()
        self.client = TestClient(create_app())
        self.user = create_user(self.auth, self.db)
        self.premium = project_by_title(self.db, "Mobile Chat App")
        self.free = project_by_title(self.db, "Landing Page Template")

    def test_free_download_needs_no_account(self):
        response = self.client.post(f"/projects/{self.free.id}/download")
        self.assertIn("Download Started", response.text)
        self.assertEqual(self.db.get_project(self.free.id).downloads, 1)

    def test_premium_download_requires_login(self):
        response = self.client.post(
            f"/projects/{self.premium.id}/download", follow_redirects=False
        )
        self.assertEqual(response.status_code, 303)
        self.assertTrue(response.headers["location"].startswith("/login?next="))

    def test_premium_download_requires_paid_plan(self):
        log_in(self.client)
        detail = self.client.get(f"/projects/{self.premium.id}")
        self.assertIn("Upgrade to download", detail.text)

        response = self.client.post(
            f"/projects/{self.premium.id}/download", follow_redirects=False
        )
        self.assertEqual(response.headers["location"], "/pricing")
        page = self.client.get("/pricing")
        self.assertIn("Upgrade your plan to download premium projects", page.text)
        self.assertEqual(self.db.get_project(self.premium.id).downloads, 0)

    def test_premium_download_with_paid_plan(self):
        subscriptions.subscribe(self.db, self.user.id, plan_named(self.db, "Pro").id)
        log_in(self.client)
        response = self.client.post(f"/projects/{self.premium.id}/download")
        self.assertIn("Download Started", response.text)
        self.assertEqual(self.db.get_project(self.premium.id).downloads, 1)


if __name__ == "__main__":
    unittest.main()
