"""Scheduler wrapper around the commission release service."""
from datetime import datetime, timezone
from decimal import Decimal

from funnelhub.jobs.commission_release import (
    register_commission_release_job,
    run_commission_release_job,
)
from funnelhub.schemas.commission_release import (
    CommissionReleaseFailure,
    CommissionReleaseSummary,
)
from funnelhub.services.commission_release import EligibilityQueryFailed, ReleaseRunInProgress
from tests.conftest import FakeReleaseService


class FakeScheduler:
    def __init__(self):
        self.jobs = []

    def add_job(self, func, trigger, **kwargs):
        self.jobs.append((func, trigger, kwargs))


class TestRunCommissionReleaseJob:

    def test_reports_summary(self, run):
        summary = CommissionReleaseSummary(
            success=False,
            total_eligible=3,
            total_released=2,
            total_failed=1,
            total_amount=Decimal("60.25"),
            failed_payments=[
                CommissionReleaseFailure(
                    payment_id=9,
                    transaction_id="txn_9",
                    error_code="LEDGER_ENTRY_MISSING",
                    error="COMMISSION_HOLD BalanceTransaction not found for payment 9 (user 1)",
                ),
            ],
            started_at=datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc),
            execution_time_ms=40,
        )

        result = run(run_commission_release_job(FakeReleaseService(summary)))

        assert result == {
            "success": False,
            "released": 2,
            "failed": 1,
            "total_amount": 60.25,
        }

    def test_skips_when_run_in_progress(self, run):
        result = run(run_commission_release_job(FakeReleaseService(ReleaseRunInProgress())))

        assert result == {"skipped": True}

    def test_fatal_error_is_reported_not_raised(self, run):
        service = FakeReleaseService(EligibilityQueryFailed(RuntimeError("connection refused")))

        result = run(run_commission_release_job(service))

        assert result["success"] is False
        assert "connection refused" in result["error"]


class TestRegisterJob:

    def test_registers_single_instance_daily_job(self):
        scheduler = FakeScheduler()

        register_commission_release_job(scheduler, hour=4, minute=30)

        func, trigger, kwargs = scheduler.jobs[0]
        assert func is run_commission_release_job
        assert trigger == "cron"
        assert kwargs["hour"] == 4
        assert kwargs["minute"] == 30
        assert kwargs["id"] == "commission_release"
        assert kwargs["max_instances"] == 1
        assert kwargs["coalesce"] is True
