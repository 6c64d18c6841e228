from django.test import SimpleTestCase, TestCase

from core.models import Profile
from core.pending_profiles import dashboard_summary, list_pending_for
from core.permissions import APPROVE_ONBOARD_ALL, APPROVE_ONBOARD_BATCH
from core.tests.utils_test_data import (
    FIXED_NOW,
    InMemoryApprovalStore,
    create_grant,
    create_profile,
    ensure_approval_privileges,
    make_grant,
)


class ListPendingForTests(TestCase):
    def setUp(self) -> None:
        ensure_approval_privileges()
        self.p2017 = create_profile(email="a@example.com", graduation_year=2017, full_name="A")
        self.p2018 = create_profile(
            email="b@example.com",
            graduation_year=2018,
            full_name="B",
            avatar_url="https://cdn.example.com/b.png",
        )
        self.p2019 = create_profile(email="c@example.com", graduation_year=2019, full_name="C")
        create_profile(email="d@example.com", graduation_year=2018, status=Profile.Status.rejected)

    def test_batch_reviewer_sees_only_granted_years(self) -> None:
        create_grant("l2@example.com", "L2", params={"batches": [2018]})

        rows = list_pending_for("l2@example.com")

        self.assertEqual([row.id for row in rows], [str(self.p2018.pk)])
        self.assertEqual(rows[0].avatar_public_url, "https://cdn.example.com/b.png")
        self.assertEqual(rows[0].as_dict()["full_name"], "B")

    def test_wide_range_grant_lists_every_year_inside_it(self) -> None:
        create_grant("l2@example.com", "L2", params={"from": 2018, "to": 100000})

        rows = list_pending_for("l2@example.com")

        self.assertCountEqual([row.id for row in rows], [str(self.p2018.pk), str(self.p2019.pk)])

    def test_unconditional_reviewer_sees_everything_pending(self) -> None:
        create_grant("admin@example.com", "ADMIN_L1")

        rows = list_pending_for("admin@example.com")

        self.assertEqual(
            [row.id for row in rows],
            [str(self.p2017.pk), str(self.p2018.pk), str(self.p2019.pk)],
        )
        self.assertIsNone(rows[0].avatar_public_url)

    def test_reviewer_without_rights_sees_nothing(self) -> None:
        create_grant("viewer@example.com", "VIEWER")
        self.assertEqual(list_pending_for("viewer@example.com"), [])

    def test_limit(self) -> None:
        create_grant("admin@example.com", "ADMIN_L1")
        self.assertEqual(len(list_pending_for("admin@example.com", limit=2)), 2)


class ListPendingForInMemoryTests(SimpleTestCase):
    def test_empty_year_set_skips_the_pending_query(self) -> None:
        store = InMemoryApprovalStore()
        store.add_grant("viewer@example.com", make_grant("VIEWER"))

        self.assertEqual(list_pending_for("viewer@example.com", FIXED_NOW, store=store), [])
        self.assertEqual(store.pending_calls, 0)

    def test_legacy_year_is_listed(self) -> None:
        store = InMemoryApprovalStore()
        store.add_privilege("L2", APPROVE_ONBOARD_BATCH)
        store.add_grant("l2@example.com", make_grant("L2"))
        store.add_profile("own", email="l2@example.com", graduation_year=2010, status=Profile.Status.approved)
        store.add_profile("classmate", graduation_year=2010)
        store.add_profile("stranger", graduation_year=2011)

        rows = list_pending_for("l2@example.com", FIXED_NOW, store=store)

        self.assertEqual([row.id for row in rows], ["classmate"])


class DashboardSummaryTests(SimpleTestCase):
    def setUp(self) -> None:
        self.store = InMemoryApprovalStore()
        self.store.add_privilege("ADMIN_L1", APPROVE_ONBOARD_ALL)
        self.store.add_privilege("L2", APPROVE_ONBOARD_BATCH)
        self.store.add_profile("p1", graduation_year=2017)
        self.store.add_profile("p2", graduation_year=2018)

    def test_unapproved_member_without_rights(self) -> None:
        self.store.add_profile("own", email="member@example.com", graduation_year=2017)

        summary = dashboard_summary("member@example.com", FIXED_NOW, store=self.store)

        self.assertEqual(summary.as_dict(), {"is_approved": False, "can_approve": False, "pending_count": 0})
        self.assertEqual(self.store.pending_calls, 0)

    def test_batch_reviewer_counts_own_batches(self) -> None:
        self.store.add_grant("l2@example.com", make_grant("L2", params={"batches": [2018]}))
        self.store.add_profile("own", email="l2@example.com", graduation_year=2001, status=Profile.Status.approved)

        summary = dashboard_summary("l2@example.com", FIXED_NOW, store=self.store)

        self.assertEqual(summary.as_dict(), {"is_approved": True, "can_approve": True, "pending_count": 1})

    def test_unconditional_reviewer_counts_everything(self) -> None:
        self.store.add_grant("admin@example.com", make_grant("ADMIN_L1"))

        summary = dashboard_summary("admin@example.com", FIXED_NOW, store=self.store)

        self.assertTrue(summary.can_approve)
        self.assertEqual(summary.pending_count, 2)
