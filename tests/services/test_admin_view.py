"""Tests for AdminSyncView — live partition, selection, and lifecycle."""

from __future__ import annotations

import pytest

from rentctl.domain.agreement import AgreementState
from rentctl.infrastructure.store import AgreementStore
from rentctl.services.admin_view import AdminSyncView
from rentctl.services.context import SessionContext
from tests.conftest import submit_agreement


def _assign(store: AgreementStore, agreement_id: str, instrument: str = "Clarinet") -> None:
    store.client().update(
        agreement_id, {"instrument": instrument, "brand": "Selmer-77", "defects": ""}
    )


class TestActivate:
    def test_admin_receives_initial_snapshot(
        self,
        admin_session: SessionContext,
        submitter_session: SessionContext,
        store: AgreementStore,
    ) -> None:
        open_id = submit_agreement(submitter_session)
        done_id = submit_agreement(submitter_session)
        _assign(store, done_id)

        view = AdminSyncView(admin_session)
        result = view.activate()
        assert result.ok
        assert view.active
        assert [a.id for a in view.pending] == [open_id]
        assert [a.id for a in view.completed] == [done_id]
        assert result.data["pending"] == [open_id]
        view.release()

    def test_submitter_is_forbidden(self, submitter_session: SessionContext) -> None:
        view = AdminSyncView(submitter_session)
        result = view.activate()
        assert result.error.code == "FORBIDDEN"
        assert not view.active
        assert submitter_session.client.open_subscriptions == []

    def test_activate_twice_keeps_single_subscription(
        self, admin_session: SessionContext, store: AgreementStore
    ) -> None:
        view = AdminSyncView(admin_session)
        view.activate()
        view.activate()
        assert store.feed.subscriber_count == 1
        view.release()


class TestLiveUpdates:
    def test_new_submission_appears_in_pending(
        self, admin_session: SessionContext, submitter_session: SessionContext
    ) -> None:
        with AdminSyncView(admin_session) as view:
            view.activate()
            assert view.pending == ()
            agreement_id = submit_agreement(submitter_session)
            assert [a.id for a in view.pending] == [agreement_id]
            assert view.deliveries == 2

    def test_assignment_moves_record_to_completed(
        self,
        admin_session: SessionContext,
        submitter_session: SessionContext,
        store: AgreementStore,
    ) -> None:
        agreement_id = submit_agreement(submitter_session)
        with AdminSyncView(admin_session) as view:
            view.activate()
            _assign(store, agreement_id)
            assert view.pending == ()
            assert [a.id for a in view.completed] == [agreement_id]

    def test_newest_first(
        self, admin_session: SessionContext, submitter_session: SessionContext
    ) -> None:
        ids = [submit_agreement(submitter_session) for _ in range(3)]
        with AdminSyncView(admin_session) as view:
            view.activate()
            assert [a.id for a in view.pending] == list(reversed(ids))

    def test_listeners_called_per_delivery(
        self, admin_session: SessionContext, submitter_session: SessionContext
    ) -> None:
        seen: list[int] = []
        view = AdminSyncView(admin_session)
        view.add_listener(lambda v: seen.append(len(v.pending)))
        view.activate()
        submit_agreement(submitter_session)
        view.release()
        assert seen == [0, 1]

    def test_failing_listener_is_isolated(
        self,
        admin_session: SessionContext,
        submitter_session: SessionContext,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        def _broken(view: AdminSyncView) -> None:
            raise RuntimeError("terminal gone")

        seen: list[int] = []
        view = AdminSyncView(admin_session)
        view.add_listener(_broken)
        view.add_listener(lambda v: seen.append(len(v.pending)))

        result = view.activate()
        submit_agreement(submitter_session)
        view.release()

        assert result.ok
        assert seen == [0, 1]
        assert "View listener failed" in caplog.text

    def test_release_prunes_client_subscriptions(self, admin_session: SessionContext) -> None:
        view = AdminSyncView(admin_session)
        view.activate()
        view.release()
        assert admin_session.client._subscriptions == []

    def test_release_stops_updates(
        self, admin_session: SessionContext, submitter_session: SessionContext
    ) -> None:
        view = AdminSyncView(admin_session)
        view.activate()
        view.release()
        submit_agreement(submitter_session)
        assert view.pending == ()
        assert not view.active

    def test_session_close_releases_view(
        self, admin_session: SessionContext, store: AgreementStore
    ) -> None:
        view = AdminSyncView(admin_session)
        view.activate()
        admin_session.close()
        assert not view.active
        assert store.feed.subscriber_count == 0


class TestSelection:
    def test_select_pending(
        self, admin_session: SessionContext, submitter_session: SessionContext
    ) -> None:
        agreement_id = submit_agreement(submitter_session)
        with AdminSyncView(admin_session) as view:
            view.activate()
            assert view.select(agreement_id).ok
            assert view.selected.id == agreement_id
            assert not view.selection_stale

    def test_select_completed_rejected(
        self,
        admin_session: SessionContext,
        submitter_session: SessionContext,
        store: AgreementStore,
    ) -> None:
        agreement_id = submit_agreement(submitter_session)
        _assign(store, agreement_id)
        with AdminSyncView(admin_session) as view:
            view.activate()
            result = view.select(agreement_id)
            assert result.error.code == "NOT_PENDING"
            assert view.selected is None

    def test_selection_goes_stale_when_assigned_elsewhere(
        self,
        admin_session: SessionContext,
        submitter_session: SessionContext,
        store: AgreementStore,
    ) -> None:
        agreement_id = submit_agreement(submitter_session)
        with AdminSyncView(admin_session) as view:
            view.activate()
            view.select(agreement_id)
            view.edit_draft(instrument="Flute")
            _assign(store, agreement_id, instrument="Oboe")

            assert view.selected.instrument == "Oboe"
            assert view.selection_stale
            assert view.draft.instrument == "Flute"

    def test_cancel_clears_selection_and_draft(
        self, admin_session: SessionContext, submitter_session: SessionContext
    ) -> None:
        agreement_id = submit_agreement(submitter_session)
        with AdminSyncView(admin_session) as view:
            view.activate()
            view.select(agreement_id)
            view.edit_draft(instrument="Flute", brand="Yamaha-123", defects="scratch")
            view.cancel()
            assert view.selected is None
            assert view.draft.instrument == ""
            assert view.draft.defects == ""


class TestListingAndShow:
    def test_listing_omits_signatures(
        self, admin_session: SessionContext, submitter_session: SessionContext
    ) -> None:
        submit_agreement(submitter_session)
        with AdminSyncView(admin_session) as view:
            view.activate()
            result = view.listing()
        doc = result.data["pending"][0]
        assert doc["studentName"] == "Alex Lee"
        assert "parentSignature" not in doc
        assert result.data["completed"] == []

    def test_listing_single_partition(self, admin_session: SessionContext) -> None:
        with AdminSyncView(admin_session) as view:
            view.activate()
            result = view.listing(AgreementState.COMPLETED)
        assert "pending" not in result.data
        assert "completed" in result.data

    def test_listing_requires_active_view(self, admin_session: SessionContext) -> None:
        result = AdminSyncView(admin_session).listing()
        assert result.error.code == "INACTIVE"

    def test_show(
        self, admin_session: SessionContext, submitter_session: SessionContext
    ) -> None:
        agreement_id = submit_agreement(submitter_session)
        with AdminSyncView(admin_session) as view:
            view.activate()
            result = view.show(agreement_id, district="Waterloo School District")
        assert result.ok
        assert result.data["state"] == "pending"
        assert result.data["parent_signed"] is True
        assert result.data["student_signed"] is True
        assert len(result.data["terms"]) == 3
        assert result.data["agreement"]["id"] == agreement_id

    def test_show_unknown(self, admin_session: SessionContext) -> None:
        with AdminSyncView(admin_session) as view:
            view.activate()
            result = view.show("agr_missing", district="x")
        assert result.error.code == "NOT_FOUND"
