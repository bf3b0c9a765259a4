"""
Celery tasks for lead maintenance.
"""
import logging
from celery import shared_task
from django.conf import settings

from leads.services.intake import LeadIntakeService

logger = logging.getLogger(__name__)


@shared_task
def sweep_pending_leads(max_age_seconds=None):
    """
    Forward leads stuck in pending status.

    The create path forwards before answering, so a lead is only left
    pending when the process died in between. Scheduled through
    CELERY_BEAT_SCHEDULE.

    Args:
        max_age_seconds: Minimum age of a pending lead, defaults to
            LEAD_FORWARDING['PENDING_SWEEP_AGE']

    Returns:
        Dict with counts of swept, processed and failed leads
    """
    # 1. Resolve the age threshold
    if max_age_seconds is None:
        max_age_seconds = settings.LEAD_FORWARDING.get('PENDING_SWEEP_AGE', 300)

    # 2. Forward every stale lead once
    results = LeadIntakeService().forward_stale_pending(int(max_age_seconds))

    # 3. Summarize
    processed = sum(1 for result in results if result.success)
    summary = {
        'swept': len(results),
        'processed': processed,
        'failed': len(results) - processed,
    }
    if results:
        logger.info(f"Pending lead sweep finished: {summary}")
    return summary
