"""
Intake orchestration: create, forward, retry and bulk-forward leads.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from asgiref.sync import async_to_sync, sync_to_async
from django.conf import settings

from leads.exceptions import DuplicateLeadError, InvalidStateTransition, LeadNotFoundError
from leads.models import Lead
from leads.services import repository
from leads.services.dispatcher import ForwardingDispatcher, ForwardingResult

logger = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


@dataclass
class BulkForwardReport:
    """Aggregated outcome of a bulk forward."""

    requested: int
    details: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.details)

    @property
    def successful(self) -> int:
        return sum(1 for detail in self.details if detail['status'] == 'success')

    @property
    def failed(self) -> int:
        return self.total - self.successful

    @property
    def not_found(self) -> int:
        return self.requested - self.total

    def summary(self) -> dict:
        return {
            'total': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'notFound': self.not_found,
        }


class LeadIntakeService:
    """
    Composes validation output, persistence and forwarding.

    Every forwarding attempt, whatever its outcome, ends in exactly one
    status update (processed or failed) with the elapsed time recorded.
    """

    def __init__(self, dispatcher: Optional[ForwardingDispatcher] = None, bulk_concurrency: Optional[int] = None):
        config = settings.LEAD_FORWARDING
        self.dispatcher = dispatcher or ForwardingDispatcher.from_settings()
        self.bulk_concurrency = max(int(bulk_concurrency or config.get('BULK_CONCURRENCY', 10)), 1)
        self.bulk_max_leads = config.get('BULK_MAX_LEADS', 100)

    # Single-lead path

    def create_lead(self, lead_data: dict) -> Lead:
        """
        Store a sanitized lead and forward it before returning.

        The lead is processed or failed by the time this returns; the
        forwarding outcome never raises to the caller.

        Raises:
            DuplicateLeadError: If the leadid already exists
        """
        leadid = lead_data['leadid']

        # 1. Reject duplicates before any forwarding attempt
        if repository.find_by_leadid(leadid) is not None:
            logger.warning(f"Duplicate lead attempt: {leadid}")
            raise DuplicateLeadError(leadid)

        # 2. Insert at pending; the unique constraint settles races
        lead = repository.insert(lead_data)
        logger.info(f"Lead {leadid} stored with status {lead.status}")

        # 3. Forward and record the outcome
        self.forward_and_record(lead)
        return lead

    def forward_and_record(self, lead: Lead) -> ForwardingResult:
        """Make one forwarding attempt and persist its outcome on the lead."""
        started = time.monotonic()

        # 1. Send to the destination API; any exception becomes a failed result
        try:
            result = self.dispatcher.forward(lead.as_forwarding_data())
        except Exception as e:
            logger.error(f"Forwarding lead {lead.leadid} raised: {e}", exc_info=True)
            result = self._crashed(lead, started, e)

        # 2. Exactly one status update: processed or failed
        self._record(lead, result, _elapsed_ms(started))
        return result

    def retry_forwarding(self, leadid: str):
        """
        Retry forwarding for a lead currently in failed status.

        Returns:
            Tuple of (lead, ForwardingResult)

        Raises:
            LeadNotFoundError: If no lead has this leadid
            InvalidStateTransition: If the lead is not in failed status
        """
        # 1. Only failed leads may be retried
        lead = repository.get_by_leadid(leadid)
        if lead.status != Lead.Status.FAILED:
            logger.warning(f"Retry refused for lead {leadid}: status is {lead.status}")
            raise InvalidStateTransition(leadid, lead.status)

        # 2. One more attempt, recorded like any other
        result = self.forward_and_record(lead)
        if result.success:
            logger.info(f"Lead forwarding retry successful for {leadid}")
        else:
            logger.error(f"Lead forwarding retry failed for {leadid}: {result.error}")
        return lead, result

    # Bulk path

    def bulk_forward(self, leadids: List[str]) -> BulkForwardReport:
        """
        Forward a batch of existing leads concurrently.

        Unknown ids are counted as not found. A failure of one lead, even an
        unexpected exception, never affects the others.

        Raises:
            ValueError: If the batch is empty or larger than the limit
            LeadNotFoundError: If none of the ids exist
        """
        # 1. Deduplicate, keeping input order, and check the batch size
        unique_ids = list(dict.fromkeys(leadids))
        if not unique_ids:
            raise ValueError("leadIds array is required and must not be empty")
        if len(unique_ids) > self.bulk_max_leads:
            raise ValueError(f"Maximum {self.bulk_max_leads} leads can be processed at once")

        # 2. Resolve existing leads; unknown ids only count as not found
        leads = repository.find_many_by_ids(unique_ids)
        if not leads:
            raise LeadNotFoundError()

        # 3. Forward concurrently and aggregate
        details = async_to_sync(self._forward_many)(leads)
        report = BulkForwardReport(requested=len(unique_ids), details=details)
        logger.info(f"Bulk lead forwarding completed: {report.summary()}")
        return report

    async def _forward_many(self, leads: List[Lead]) -> List[Dict[str, Any]]:
        semaphore = asyncio.Semaphore(self.bulk_concurrency)

        async with self.dispatcher.async_client() as client:
            async def run(lead):
                async with semaphore:
                    return await self._forward_one(lead, client)

            outcomes = await asyncio.gather(
                *(run(lead) for lead in leads),
                return_exceptions=True
            )

        details = []
        for lead, outcome in zip(leads, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Bulk forwarding of lead {lead.leadid} crashed: {outcome!r}")
                outcome = self._detail(lead, None, 0, error=str(outcome) or repr(outcome))
            details.append(outcome)
        return details

    async def _forward_one(self, lead: Lead, client: httpx.AsyncClient) -> Dict[str, Any]:
        started = time.monotonic()
        try:
            result = await self.dispatcher.aforward(lead.as_forwarding_data(), client)
        except Exception as e:
            logger.error(f"Bulk forwarding lead {lead.leadid} raised: {e}", exc_info=True)
            result = self._crashed(lead, started, e)

        # Record per lead; a failed update only affects this lead's detail
        elapsed = _elapsed_ms(started)
        try:
            await sync_to_async(self._record)(lead, result, elapsed)
        except Exception as e:
            logger.error(f"Could not record outcome for lead {lead.leadid}: {e}", exc_info=True)
            return self._detail(lead, result, elapsed, error=f"Status update failed: {e}")

        return self._detail(lead, result, elapsed)

    # Recovery

    def forward_stale_pending(self, max_age_seconds: int) -> List[ForwardingResult]:
        """
        Forward leads left pending for longer than max_age_seconds.

        A lead stays pending only when the process stopped between insert
        and forward; each one gets a single attempt here.
        """
        stale = repository.find_stale_pending(max_age_seconds)
        if not stale:
            return []

        logger.warning(f"Found {len(stale)} lead(s) pending for over {max_age_seconds}s")
        return [self.forward_and_record(lead) for lead in stale]

    # Status and delete

    def update_status(self, leadid: str, status: str) -> Lead:
        lead = repository.update_status(leadid, status)
        logger.info(f"Lead {leadid} status set to {status}")
        return lead

    def delete_lead(self, leadid: str) -> None:
        repository.delete(leadid)
        logger.info(f"Lead {leadid} deleted")

    # Helpers

    def _record(self, lead: Lead, result: ForwardingResult, elapsed: int) -> None:
        status = Lead.Status.PROCESSED if result.success else Lead.Status.FAILED
        lead.mark_as(status, elapsed)
        if result.success:
            logger.info(f"Lead {lead.leadid} marked {status} via {result.endpoint}")
        else:
            logger.error(f"Lead {lead.leadid} marked {status}: {result.error}")

    def _crashed(self, lead: Lead, started: float, error: Exception) -> ForwardingResult:
        destination, endpoint = self.dispatcher.resolve(lead.category)
        return ForwardingResult(
            success=False,
            destination=destination.value,
            endpoint=endpoint,
            category=lead.category,
            elapsed_ms=_elapsed_ms(started),
            error=str(error) or error.__class__.__name__,
        )

    @staticmethod
    def _detail(lead: Lead, result: Optional[ForwardingResult], elapsed: int, error: Optional[str] = None) -> dict:
        success = bool(result and result.success) and error is None
        detail = {
            'leadid': lead.leadid,
            'status': 'success' if success else 'failed',
            'category': lead.category,
            'processingTime': elapsed,
        }
        if result is not None:
            detail['apiEndpoint'] = result.endpoint
        if not success:
            detail['error'] = error or (result.error if result else None)
        return detail
