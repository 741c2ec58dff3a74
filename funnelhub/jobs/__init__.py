"""
Background Jobs Module

Handles scheduled tasks for:
- Affiliate commission release
"""

from funnelhub.jobs.scheduler import scheduler, start_scheduler, shutdown_scheduler
from funnelhub.jobs.commission_release import run_commission_release_job

__all__ = [
    "scheduler",
    "start_scheduler",
    "shutdown_scheduler",
    "run_commission_release_job",
]
