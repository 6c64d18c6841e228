import uuid
from unittest.mock import patch

from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase

from core.approval_store import DjangoApprovalStore
from core.approval_workflow import approve_pending_profile, parse_approval_action
from core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    StoreUnavailableError,
)
from core.models import ApprovalAudit, Profile
from core.permissions import APPROVE_ONBOARD_BATCH
from core.tests.utils_test_data import (
    FIXED_NOW,
    InMemoryApprovalStore,
    create_grant,
    create_privilege,
    create_profile,
    make_grant,
)

REVIEWER = "l2@example.com"


class ApprovePendingProfileTests(TestCase):
    def setUp(self) -> None:
        create_privilege("L2", APPROVE_ONBOARD_BATCH)
        create_grant(REVIEWER, "L2", params={"batches": [2018]})
        self.profile = create_profile(email="alum@example.com", graduation_year=2018, full_name="Alum")

    def test_batch_reviewer_approves_profile_end_to_end(self) -> None:
        outcome = approve_pending_profile(principal=REVIEWER, profile_id=str(self.profile.pk), action="APPROVE")

        self.assertEqual(outcome.status, Profile.Status.approved)
        self.assertEqual(outcome.message, "Profile approved successfully")
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.status, Profile.Status.approved)
        self.assertTrue(self.profile.is_approved)
        self.assertEqual(self.profile.approved_by_email, REVIEWER)
        self.assertIsNotNone(self.profile.approved_date)

        audit = ApprovalAudit.objects.get(profile=self.profile)
        self.assertEqual(audit.membership_type, "L2")
        self.assertEqual(audit.approver_email, REVIEWER)
        self.assertEqual(audit.action, ApprovalAudit.Action.approve)

    def test_reject(self) -> None:
        outcome = approve_pending_profile(principal=REVIEWER, profile_id=str(self.profile.pk), action="reject")

        self.assertEqual(outcome.message, "Profile rejected successfully")
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.status, Profile.Status.rejected)
        self.assertFalse(self.profile.is_approved)
        self.assertIsNone(self.profile.approved_date)
        self.assertEqual(
            list(ApprovalAudit.objects.values_list("action", flat=True)),
            [ApprovalAudit.Action.reject],
        )

    def test_second_decision_is_rejected_as_not_pending(self) -> None:
        approve_pending_profile(principal=REVIEWER, profile_id=str(self.profile.pk), action="APPROVE")

        with self.assertRaises(InvalidStateError):
            approve_pending_profile(principal=REVIEWER, profile_id=str(self.profile.pk), action="REJECT")

        self.profile.refresh_from_db()
        self.assertEqual(self.profile.status, Profile.Status.approved)
        self.assertEqual(ApprovalAudit.objects.count(), 1)

    def test_concurrent_decision_between_load_and_update_wins(self) -> None:
        real_load = DjangoApprovalStore.load_profile

        def load_then_decided_elsewhere(store, profile_id):
            snapshot = real_load(store, profile_id)
            Profile.objects.filter(pk=self.profile.pk).update(
                status=Profile.Status.rejected,
                approved_by_email="other-admin@example.com",
            )
            return snapshot

        with (
            patch.object(DjangoApprovalStore, "load_profile", autospec=True, side_effect=load_then_decided_elsewhere),
            self.assertLogs("core.approval_workflow", level="INFO") as logs,
            self.assertRaises(InvalidStateError),
        ):
            approve_pending_profile(principal=REVIEWER, profile_id=str(self.profile.pk), action="APPROVE")

        self.assertIn("lost transition", "\n".join(logs.output))
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.status, Profile.Status.rejected)
        self.assertFalse(self.profile.is_approved)
        self.assertEqual(self.profile.approved_by_email, "other-admin@example.com")
        self.assertFalse(ApprovalAudit.objects.exists())

    def test_unknown_profile_is_not_found(self) -> None:
        for profile_id in (str(uuid.uuid4()), "not-a-uuid"):
            with self.subTest(profile_id=profile_id), self.assertRaises(NotFoundError):
                approve_pending_profile(principal=REVIEWER, profile_id=profile_id, action="APPROVE")

    def test_out_of_batch_profile_is_forbidden(self) -> None:
        other = create_profile(email="other@example.com", graduation_year=2019)

        with self.assertRaises(ForbiddenError) as ctx:
            approve_pending_profile(principal=REVIEWER, profile_id=str(other.pk), action="APPROVE")

        self.assertEqual(ctx.exception.message, "Not authorized to approve/reject this profile")
        other.refresh_from_db()
        self.assertEqual(other.status, Profile.Status.pending)
        self.assertFalse(ApprovalAudit.objects.exists())

    def test_state_is_checked_before_authorization(self) -> None:
        decided = create_profile(
            email="other@example.com",
            graduation_year=2019,
            status=Profile.Status.approved,
            is_approved=True,
        )

        with self.assertRaises(InvalidStateError):
            approve_pending_profile(principal=REVIEWER, profile_id=str(decided.pk), action="APPROVE")

    def test_audit_failure_does_not_undo_the_decision(self) -> None:
        with (
            patch.object(DjangoApprovalStore, "record_audit", side_effect=StoreUnavailableError()),
            self.assertLogs("core.approval_workflow", level="ERROR") as logs,
        ):
            outcome = approve_pending_profile(principal=REVIEWER, profile_id=str(self.profile.pk), action="APPROVE")

        self.assertEqual(outcome.status, Profile.Status.approved)
        self.assertIn("audit insert failed", "\n".join(logs.output))
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.status, Profile.Status.approved)
        self.assertFalse(ApprovalAudit.objects.exists())

    def test_store_failure_propagates(self) -> None:
        with (
            patch.object(Profile.objects, "filter", side_effect=DatabaseError("connection lost")),
            self.assertLogs("core.approval_store", level="ERROR"),
            self.assertRaises(StoreUnavailableError),
        ):
            approve_pending_profile(principal=REVIEWER, profile_id=str(self.profile.pk), action="APPROVE")


class ApprovePendingProfileInMemoryTests(SimpleTestCase):
    def setUp(self) -> None:
        self.store = InMemoryApprovalStore()
        self.store.add_privilege("L2", APPROVE_ONBOARD_BATCH)
        self.store.add_grant(REVIEWER, make_grant("L2", params={"from": 2015, "to": 2019}))
        self.store.add_profile("target", email="alum@example.com", graduation_year=2016)

    def approve(self, principal: str = REVIEWER, action: str = "APPROVE"):
        return approve_pending_profile(
            principal=principal,
            profile_id="target",
            action=action,
            now=FIXED_NOW,
            store=self.store,
        )

    def test_lost_race_is_reported_as_not_pending(self) -> None:
        self.store.stale_reads = True

        self.approve()
        with self.assertRaises(InvalidStateError):
            self.approve(action="REJECT")

        self.assertEqual(self.store.profiles["target"].status, Profile.Status.approved)
        self.assertEqual(len(self.store.audits), 1)

    def test_audit_records_justifying_grant(self) -> None:
        self.approve()

        self.assertEqual(
            self.store.audits,
            [
                {
                    "profile_id": "target",
                    "approver": REVIEWER,
                    "membership_type": "L2",
                    "action": "APPROVE",
                    "at": FIXED_NOW,
                }
            ],
        )

    def test_legacy_fallback_audit_has_no_membership_type(self) -> None:
        self.store.add_profile("own", email=REVIEWER, graduation_year=2001)
        self.store.add_profile("classmate", email="classmate@example.com", graduation_year=2001)

        approve_pending_profile(principal=REVIEWER, profile_id="classmate", action="APPROVE", now=FIXED_NOW, store=self.store)

        self.assertIsNone(self.store.audits[0]["membership_type"])

    def test_swallowed_audit_failure_is_logged(self) -> None:
        self.store.fail_audit = True

        with self.assertLogs("core.approval_workflow", level="ERROR"):
            outcome = self.approve()

        self.assertEqual(outcome.status, Profile.Status.approved)
        self.assertEqual(self.store.audits, [])

    def test_principal_without_memberships_is_forbidden(self) -> None:
        with self.assertRaises(ForbiddenError):
            self.approve(principal="stranger@example.com")
        self.assertEqual(self.store.profiles["target"].status, Profile.Status.pending)

    def test_invalid_input(self) -> None:
        with self.assertRaises(InvalidInputError):
            self.approve(action="DELETE")
        with self.assertRaises(InvalidInputError):
            approve_pending_profile(principal=REVIEWER, profile_id="  ", action="APPROVE", store=self.store)

    def test_parse_approval_action(self) -> None:
        self.assertEqual(parse_approval_action(" approve "), "APPROVE")
        self.assertEqual(parse_approval_action("Reject"), "REJECT")
        with self.assertRaises(InvalidInputError):
            parse_approval_action(None)
