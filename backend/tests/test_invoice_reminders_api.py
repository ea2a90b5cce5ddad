"""Tests for the reminder API: preview, dispatch, scheduled run and history."""

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.clock import get_now
from app.main import app
from app.models.invoice import InvoiceStatus
from app.models.invoice_reminder import ReminderOutcome
from app.repositories.invoice_reminder_repository import InvoiceReminderRepository
from app.repositories.invoice_repository import InvoiceRepository
from app.services.reminder_notifier import DeliveryResult, ReminderNotifier, get_reminder_notifier
from tests.conftest import TODAY, create_invoice

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)


class StubNotifier(ReminderNotifier):
    def __init__(self, failing: tuple[str, ...] = ()):
        self.failing = failing
        self.recipients: list[str] = []

    @property
    def channel(self) -> str:
        return "stub"

    async def send(self, recipient: str, subject: str, body: str) -> DeliveryResult:
        self.recipients.append(recipient)
        if recipient in self.failing:
            return DeliveryResult(ok=False, error="mailbox unavailable")
        return DeliveryResult(ok=True)


@pytest.fixture
def notifier():
    return StubNotifier(failing=("bad@example.com",))


@pytest.fixture
def client(notifier: StubNotifier):
    """Create test client with a pinned clock and stub transport."""
    app.dependency_overrides[get_now] = lambda: NOW
    app.dependency_overrides[get_reminder_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestPreviewReminders:
    def test_preview_classifies_due_invoices(self, client: TestClient, db_session: Session) -> None:
        soon = create_invoice(db_session, due_date=TODAY + timedelta(days=10))
        late = create_invoice(db_session, due_date=TODAY - timedelta(days=20))

        response = client.get("/v1/invoices/reminders/preview")

        assert response.status_code == 200
        data = response.json()
        assert data["as_of"] == "2026-10-19"
        assert data["count"] == 2
        assert [r["invoice_id"] for r in data["reminders"]] == [str(late.id), str(soon.id)]
        assert data["reminders"][0]["reminder_type"] == "overdue_30"
        assert data["reminders"][0]["urgency"] == "final_notice"
        assert data["reminders"][1]["reminder_type"] == "before_due_7"
        assert data["reminders"][1]["days_until_due"] == 10

    def test_preview_as_of_override(self, client: TestClient, db_session: Session) -> None:
        create_invoice(db_session, due_date=TODAY)

        response = client.get("/v1/invoices/reminders/preview", params={"as_of": "2026-10-29"})

        data = response.json()
        assert data["as_of"] == "2026-10-29"
        assert data["reminders"][0]["reminder_type"] == "overdue_14"

    def test_preview_by_ids(self, client: TestClient, db_session: Session) -> None:
        scheduled = create_invoice(db_session, next_reminder_date=TODAY + timedelta(days=3))
        create_invoice(db_session)

        response = client.get(
            "/v1/invoices/reminders/preview", params={"invoice_ids": [str(scheduled.id)]},
        )

        data = response.json()
        assert [r["invoice_id"] for r in data["reminders"]] == [str(scheduled.id)]

    def test_preview_sends_nothing(
        self, client: TestClient, db_session: Session, notifier: StubNotifier,
    ) -> None:
        create_invoice(db_session)
        client.get("/v1/invoices/reminders/preview")
        assert notifier.recipients == []
        assert InvoiceReminderRepository(db_session).count() == 0


class TestDispatchReminders:
    def test_send_all_partial_failure_is_200(self, client: TestClient, db_session: Session) -> None:
        ok = create_invoice(db_session, client_email="ok@example.com")
        bad = create_invoice(db_session, client_email="bad@example.com")

        response = client.post("/v1/invoices/reminders/dispatch", json={"sendAll": True})

        assert response.status_code == 200
        data = response.json()
        assert data["sent"] == 1
        assert data["failed"] == 1
        details = {d["invoice_id"]: d for d in data["details"]}
        assert details[str(ok.id)]["status"] == "sent"
        assert details[str(ok.id)]["reminder_type"] == "on_due"
        assert details[str(bad.id)]["status"] == "failed"
        assert details[str(bad.id)]["error"] == "mailbox unavailable"

        db_session.expire_all()
        repo = InvoiceRepository(db_session)
        assert repo.get_by_id(ok.id).reminder_count == 1  # type: ignore[union-attr]
        assert repo.get_by_id(ok.id).next_reminder_date == TODAY + timedelta(days=7)  # type: ignore[union-attr]
        assert repo.get_by_id(bad.id).reminder_count == 0  # type: ignore[union-attr]
        assert InvoiceReminderRepository(db_session).count() == 2

    def test_dispatch_by_ids(self, client: TestClient, db_session: Session, notifier: StubNotifier) -> None:
        chosen = create_invoice(db_session, client_email="chosen@example.com")
        create_invoice(db_session, client_email="other@example.com")

        response = client.post(
            "/v1/invoices/reminders/dispatch", json={"invoice_ids": [str(chosen.id)]},
        )

        assert response.status_code == 200
        assert response.json()["sent"] == 1
        assert notifier.recipients == ["chosen@example.com"]

    def test_empty_body_is_rejected(self, client: TestClient, db_session: Session) -> None:
        create_invoice(db_session)

        response = client.post("/v1/invoices/reminders/dispatch", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Provide invoice_ids or set send_all=true"
        assert InvoiceReminderRepository(db_session).count() == 0

    def test_malformed_invoice_id(self, client: TestClient) -> None:
        response = client.post(
            "/v1/invoices/reminders/dispatch", json={"invoice_ids": ["not-a-uuid"]},
        )
        assert response.status_code == 422

    def test_nothing_due(self, client: TestClient) -> None:
        response = client.post("/v1/invoices/reminders/dispatch", json={"send_all": True})
        assert response.status_code == 200
        assert response.json() == {"sent": 0, "failed": 0, "details": []}


class TestRunReminderSweep:
    def test_runs_without_secret_when_unconfigured(self, client: TestClient, db_session: Session) -> None:
        create_invoice(db_session)
        with patch("app.core.auth.settings") as mock_settings:
            mock_settings.CRON_SECRET = ""
            response = client.post("/v1/invoices/reminders/run")
        assert response.status_code == 200
        assert response.json()["sent"] == 1

    def test_requires_secret(self, client: TestClient, db_session: Session) -> None:
        create_invoice(db_session)
        with patch("app.core.auth.settings") as mock_settings:
            mock_settings.CRON_SECRET = "s3cret"
            response = client.post("/v1/invoices/reminders/run")
        assert response.status_code == 401
        assert response.json()["detail"] == "Cron secret is required"
        assert InvoiceReminderRepository(db_session).count() == 0

    def test_rejects_non_bearer_header(self, client: TestClient) -> None:
        with patch("app.core.auth.settings") as mock_settings:
            mock_settings.CRON_SECRET = "s3cret"
            response = client.post(
                "/v1/invoices/reminders/run", headers={"Authorization": "Basic s3cret"},
            )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid authorization header format"

    def test_rejects_wrong_secret(self, client: TestClient) -> None:
        with patch("app.core.auth.settings") as mock_settings:
            mock_settings.CRON_SECRET = "s3cret"
            response = client.post(
                "/v1/invoices/reminders/run", headers={"Authorization": "Bearer nope"},
            )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid cron secret"

    def test_accepts_valid_secret(self, client: TestClient, db_session: Session) -> None:
        create_invoice(db_session, next_reminder_date=TODAY + timedelta(days=1))
        due = create_invoice(db_session)
        with patch("app.core.auth.settings") as mock_settings:
            mock_settings.CRON_SECRET = "s3cret"
            response = client.post(
                "/v1/invoices/reminders/run", headers={"Authorization": "Bearer s3cret"},
            )
        assert response.status_code == 200
        data = response.json()
        assert data["sent"] == 1
        assert data["details"][0]["invoice_id"] == str(due.id)


class TestReminderHistory:
    def _seed(self, db_session: Session) -> tuple[uuid.UUID, uuid.UUID]:
        first = create_invoice(db_session)
        second = create_invoice(db_session)
        repo = InvoiceReminderRepository(db_session)
        for days in range(3):
            repo.create(
                invoice_id=first.id,  # type: ignore[arg-type]
                reminder_type="overdue_7",
                recipient_email="amira@example.com",
                subject="Payment Overdue",
                status=ReminderOutcome.SENT,
                sent_at=NOW - timedelta(days=days),
            )
        repo.create(
            invoice_id=second.id,  # type: ignore[arg-type]
            reminder_type="on_due",
            recipient_email="amira@example.com",
            subject="Payment Due Today",
            status=ReminderOutcome.FAILED,
            error_message="mailbox unavailable",
            sent_at=NOW,
        )
        return first.id, second.id  # type: ignore[return-value]

    def test_history_with_stats(self, client: TestClient, db_session: Session) -> None:
        self._seed(db_session)

        response = client.get("/v1/invoices/reminders/history")

        assert response.status_code == 200
        data = response.json()
        assert len(data["reminders"]) == 4
        assert data["pagination"] == {"total": 4, "skip": 0, "limit": 50, "has_more": False}
        assert data["stats"] == {"total": 4, "sent": 3, "failed": 1}

    def test_history_pagination(self, client: TestClient, db_session: Session) -> None:
        self._seed(db_session)

        response = client.get("/v1/invoices/reminders/history", params={"skip": 1, "limit": 2})

        data = response.json()
        assert len(data["reminders"]) == 2
        assert data["pagination"]["has_more"] is True

    def test_history_filters(self, client: TestClient, db_session: Session) -> None:
        first_id, second_id = self._seed(db_session)

        by_invoice = client.get(
            "/v1/invoices/reminders/history", params={"invoice_id": str(first_id)},
        ).json()
        assert by_invoice["pagination"]["total"] == 3
        assert {r["invoice_id"] for r in by_invoice["reminders"]} == {str(first_id)}

        failed = client.get("/v1/invoices/reminders/history", params={"status": "failed"}).json()
        assert [r["invoice_id"] for r in failed["reminders"]] == [str(second_id)]
        assert failed["reminders"][0]["error_message"] == "mailbox unavailable"
        # Stats always cover the whole log
        assert failed["stats"]["total"] == 4

    def test_history_rejects_bad_limit(self, client: TestClient) -> None:
        response = client.get("/v1/invoices/reminders/history", params={"limit": 1000})
        assert response.status_code == 422

    def test_reminders_path_not_treated_as_invoice_id(
        self, client: TestClient, db_session: Session,
    ) -> None:
        create_invoice(db_session, status=InvoiceStatus.OVERDUE.value)
        response = client.get("/v1/invoices/reminders/history")
        assert response.status_code == 200
