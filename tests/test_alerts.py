"""
Tests for compliance alerting.

Tests cover:
- AlertingClient payloads and delivery failures
- Post-commit dispatch and broker outages
- Derived violation recording and warning deduplication
- Alert delivery tasks, retries and the periodic HOS scan
"""

import logging
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
import requests
from celery.exceptions import Retry
from django.utils import timezone

from apps.eld.alerts import AlertDispatcher, ComplianceEventEmitter, approaching_limits
from apps.eld.hos import BREAK_REQUIRED, DRIVING_LIMIT, calculate_hos_state
from apps.eld.models import ComplianceEvent
from apps.eld.notifications import AlertingClient
from apps.eld.services import HOSComplianceService
from apps.eld.statuses import DRIVING, OFF_DUTY
from apps.eld.tasks import deliver_compliance_alert, scan_hos_exceptions
from tests.utils import at, seg


@pytest.fixture
def event(company, driver, samsara_device):
    return ComplianceEvent.objects.create(
        company=company,
        driver=driver,
        eld_device=samsara_device,
        truck=samsara_device.truck,
        event_type=ComplianceEvent.EVENT_HOS_VIOLATION,
        severity="critical",
        title="Exceeded 11-hour driving limit",
        description="Dana Reyes: Exceeded 11-hour driving limit",
        event_time=at(11),
    )


def _over_limit_state(driver_id=1):
    """11.5 hours of driving with a break, as of 12:00."""
    segments = [
        seg(DRIVING, at(0), at(6)),
        seg(OFF_DUTY, at(6), at(6, 30)),
        seg(DRIVING, at(6, 30), at(12)),
    ]
    return calculate_hos_state(segments, at(12), driver_id=driver_id)


# =============================================================================
# AlertingClient
# =============================================================================


class TestAlertingClient:
    """Test the outbound alerting client."""

    @patch("apps.eld.notifications.requests.post")
    def test_send_alert_payload(self, mock_post):
        """Test title, severity and entities are posted as JSON."""
        client = AlertingClient(url="https://alerts.example.test/hook", api_key="secret-key")

        delivered = client.send_alert(
            "Exceeded 11-hour driving limit",
            "Dana Reyes: Exceeded 11-hour driving limit",
            "critical",
            driver_id=7,
            truck_id=3,
            event_id=42,
            company_id=1,
        )

        assert delivered is True
        args, kwargs = mock_post.call_args
        assert args == ("https://alerts.example.test/hook",)
        assert kwargs["json"]["severity"] == "critical"
        assert kwargs["json"]["entities"] == {
            "company_id": 1,
            "driver_id": 7,
            "truck_id": 3,
            "device_id": None,
            "event_id": 42,
        }
        assert kwargs["headers"]["Authorization"] == "Bearer secret-key"
        assert kwargs["timeout"] == 5

    @patch("apps.eld.notifications.requests.post")
    def test_no_api_key_no_auth_header(self, mock_post):
        """Test the Authorization header is only sent with a key."""
        AlertingClient(url="https://alerts.example.test/hook", api_key="").send_alert("t", "m", "info")

        assert "Authorization" not in mock_post.call_args.kwargs["headers"]

    @patch("apps.eld.notifications.requests.post")
    def test_connection_error(self, mock_post, caplog):
        """Test a network failure returns False and is logged."""
        mock_post.side_effect = requests.ConnectionError("refused")

        with caplog.at_level(logging.ERROR):
            delivered = AlertingClient(url="https://alerts.example.test/hook").send_alert(
                "Title", "Message", "critical", driver_id=7
            )

        assert delivered is False
        assert "Alert delivery failed for 'Title' (driver 7): refused" in caplog.text

    @patch("apps.eld.notifications.requests.post")
    def test_http_error(self, mock_post):
        """Test a non-2xx response returns False."""
        mock_post.return_value.raise_for_status.side_effect = requests.HTTPError("503")

        assert AlertingClient(url="https://alerts.example.test/hook").send_alert("t", "m", "info") is False

    @patch("apps.eld.notifications.requests.post")
    def test_not_configured(self, mock_post):
        """Test nothing is sent without a URL."""
        assert AlertingClient(url="").send_alert("t", "m", "info") is False
        mock_post.assert_not_called()


# =============================================================================
# Dispatch
# =============================================================================


@pytest.mark.django_db
class TestAlertDispatcher:
    """Test post-commit task dispatch."""

    def test_dispatch_after_commit(self, event, django_capture_on_commit_callbacks):
        """Test the task is queued only once the transaction commits."""
        with patch("apps.eld.tasks.deliver_compliance_alert.delay") as delay:
            with django_capture_on_commit_callbacks() as callbacks:
                AlertDispatcher().dispatch_event(event)
                delay.assert_not_called()

            for callback in callbacks:
                callback()

        delay.assert_called_once_with(event.pk)

    def test_broker_outage_swallowed(self, event, django_capture_on_commit_callbacks, caplog):
        """Test a broker failure is logged, never raised."""
        with patch("apps.eld.tasks.deliver_compliance_alert.delay", side_effect=ConnectionError("down")):
            with caplog.at_level(logging.ERROR):
                with django_capture_on_commit_callbacks(execute=True):
                    AlertDispatcher().dispatch_event(event)

        assert f"Could not queue alert for compliance event {event.pk}: down" in caplog.text

    def test_warning_dispatch(self, driver, django_capture_on_commit_callbacks):
        """Test warnings carry the driver and company."""
        with patch("apps.eld.tasks.deliver_hos_warning.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True):
                AlertDispatcher().dispatch_warning(driver, "Driving limit approaching", "1.5 hours left")

        delay.assert_called_once_with(
            company_id=driver.company_id,
            driver_id=driver.pk,
            title="Driving limit approaching",
            message="1.5 hours left",
        )


# =============================================================================
# Emission
# =============================================================================


@pytest.mark.django_db
class TestComplianceEventEmitter:
    """Test recording of derived violations and warnings."""

    def test_emit_derived_once_per_window(self, driver, truck):
        """Test recomputing the same state records one event."""
        dispatcher = MagicMock()
        emitter = ComplianceEventEmitter(dispatcher=dispatcher)
        state = _over_limit_state(driver.pk)

        first = emitter.emit_derived(driver, state, truck=truck)
        second = emitter.emit_derived(driver, state, truck=truck)

        assert len(first) == 1
        assert second == []
        event = ComplianceEvent.objects.get()
        assert event.dedupe_key == f"hos:{driver.pk}:{DRIVING_LIMIT}:{at(0).isoformat()}"
        assert event.event_time == at(11, 30)
        assert event.metadata["code"] == DRIVING_LIMIT
        assert event.truck == truck
        dispatcher.dispatch_event.assert_called_once_with(event)

    def test_emit_reported(self, event):
        """Test every reported event is dispatched."""
        dispatcher = MagicMock()

        ComplianceEventEmitter(dispatcher=dispatcher).emit_reported([event])

        dispatcher.dispatch_event.assert_called_once_with(event)

    def test_emit_warnings_once(self, driver):
        """Test a warning is sent once per duty window."""
        dispatcher = MagicMock()
        emitter = ComplianceEventEmitter(dispatcher=dispatcher)
        segments = [
            seg(DRIVING, at(0), at(5)),
            seg(OFF_DUTY, at(5), at(5, 30)),
            seg(DRIVING, at(5, 30), at(10)),
        ]
        state = calculate_hos_state(segments, at(10), driver_id=driver.pk)

        assert emitter.emit_warnings(driver, state) == [DRIVING_LIMIT]
        assert emitter.emit_warnings(driver, state) == []
        dispatcher.dispatch_warning.assert_called_once()
        assert dispatcher.dispatch_warning.call_args.args[1] == "Driving limit approaching"


class TestApproachingLimits:
    """Test warning thresholds."""

    def test_break_due_warning(self):
        """Test exactly 8 hours of driving warns about the break."""
        state = calculate_hos_state([seg(DRIVING, at(0), at(8))], at(8))

        assert [code for code, _, _ in approaching_limits(state)] == [BREAK_REQUIRED]

    def test_violated_break_not_warned(self):
        """Test a break already violated is not also warned."""
        state = calculate_hos_state([seg(DRIVING, at(0), at(9))], at(9))

        assert BREAK_REQUIRED in state.violation_codes
        assert BREAK_REQUIRED not in [code for code, _, _ in approaching_limits(state)]

    def test_fresh_driver(self):
        """Test nothing is close for a rested driver."""
        state = calculate_hos_state([seg(DRIVING, at(0), at(1))], at(1))

        assert approaching_limits(state) == []


# =============================================================================
# Tasks
# =============================================================================


@pytest.mark.django_db
class TestDeliverComplianceAlert:
    """Test the alert delivery task."""

    def test_delivered(self, event):
        """Test success stamps notified_at."""
        with patch.object(AlertingClient, "send_alert", return_value=True) as send_alert:
            result = deliver_compliance_alert(event.pk)

        assert result == {"success": True, "event_id": event.pk}
        assert send_alert.call_args.kwargs["severity"] == "critical"
        assert send_alert.call_args.kwargs["event_id"] == event.pk
        event.refresh_from_db()
        assert event.notified_at is not None

    def test_already_notified(self, event):
        """Test a notified event is not sent again."""
        event.notified_at = timezone.now()
        event.save()

        with patch.object(AlertingClient, "send_alert") as send_alert:
            result = deliver_compliance_alert(event.pk)

        assert result["message"] == "Already notified"
        send_alert.assert_not_called()

    def test_failure_retries(self, event):
        """Test a failed delivery asks Celery to retry."""
        with patch.object(AlertingClient, "send_alert", return_value=False):
            with pytest.raises(Retry):
                deliver_compliance_alert(event.pk)

        event.refresh_from_db()
        assert event.notified_at is None

    def test_gives_up_after_max_retries(self, event, caplog):
        """Test the last attempt logs and returns a failure."""
        with patch.object(AlertingClient, "send_alert", return_value=False):
            with caplog.at_level(logging.ERROR):
                result = deliver_compliance_alert.apply(args=[event.pk], retries=3).get()

        assert result["success"] is False
        assert f"Giving up on alert for compliance event {event.pk}" in caplog.text

    def test_missing_event(self):
        """Test a vanished event is reported, not raised."""
        assert deliver_compliance_alert(999999) == {"success": False, "error": "Event not found"}


@pytest.mark.django_db
class TestScanHOSExceptions:
    """Test the periodic HOS scan."""

    @pytest.fixture
    def over_limit(self, make_log, driver):
        now = timezone.now()
        make_log(driver, "driving", now - timedelta(hours=12), now - timedelta(hours=6))
        make_log(driver, "off_duty", now - timedelta(hours=6), now - timedelta(hours=5, minutes=30))
        make_log(driver, "driving", now - timedelta(hours=5, minutes=30), now)

    def test_scan_records_violations(self, over_limit, driver, second_driver):
        """Test the scan records new violations once."""
        first = scan_hos_exceptions()
        second = scan_hos_exceptions()

        assert first == {"drivers": 2, "violations": 1, "warnings": 0, "errors": 0}
        assert second["violations"] == 0
        event = ComplianceEvent.objects.get()
        assert event.driver == driver
        assert event.source == ComplianceEvent.SOURCE_CALCULATOR

    def test_inactive_company_skipped(self, over_limit, company):
        """Test drivers of inactive companies are not scanned."""
        company.is_active = False
        company.save()

        assert scan_hos_exceptions()["drivers"] == 0

    def test_driver_failure_is_counted(self, driver, second_driver, caplog):
        """Test one failing driver does not stop the scan."""
        with patch.object(HOSComplianceService, "get_state", side_effect=RuntimeError("boom")):
            with caplog.at_level(logging.ERROR):
                summary = scan_hos_exceptions()

        assert summary["errors"] == 2
        assert f"HOS scan failed for driver {driver.pk}: boom" in caplog.text
