"""
Persistence gateway for Lead records.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, Q, QuerySet
from django.utils import timezone

from leads.exceptions import DuplicateLeadError, InvalidStatusError, LeadNotFoundError
from leads.models import Lead

logger = logging.getLogger(__name__)

TOP_BY_FIELDS = ('city', 'category')


@dataclass(frozen=True)
class LeadFilter:
    """Filter over stored leads. Empty values are ignored."""

    city: Optional[str] = None
    category: Optional[str] = None
    leadtype: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def to_q(self) -> Q:
        q = Q()
        if self.city:
            q &= Q(city__icontains=self.city)
        if self.category:
            q &= Q(category__icontains=self.category)
        if self.leadtype:
            q &= Q(leadtype=self.leadtype)
        if self.status:
            q &= Q(status=self.status)
        if self.start_date:
            q &= Q(date__gte=self.start_date)
        if self.end_date:
            q &= Q(date__lte=self.end_date)
        return q


@dataclass(frozen=True)
class Page:
    """One page of leads plus the pagination block of the list response."""

    items: List[Lead]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {
            'page': self.page,
            'limit': self.limit,
            'total': self.total,
            'pages': self.pages,
        }


def _filtered(lead_filter: Optional[LeadFilter]) -> QuerySet:
    queryset = Lead.objects.all()
    if lead_filter is not None:
        queryset = queryset.filter(lead_filter.to_q())
    return queryset


def find_by_leadid(leadid: str) -> Optional[Lead]:
    return Lead.objects.filter(leadid=leadid).first()


def get_by_leadid(leadid: str) -> Lead:
    """Like find_by_leadid but raises LeadNotFoundError."""
    lead = find_by_leadid(leadid)
    if lead is None:
        raise LeadNotFoundError(leadid)
    return lead


def insert(lead_data: dict) -> Lead:
    """
    Insert a new lead at status pending.

    The unique constraint on leadid is the authority on duplicates; the
    insert runs in a savepoint so a collision leaves the caller's
    transaction usable.

    Raises:
        DuplicateLeadError: If a lead with the same leadid already exists
    """
    fields = dict(lead_data)
    fields['status'] = Lead.Status.PENDING
    try:
        with transaction.atomic():
            return Lead.objects.create(**fields)
    except IntegrityError:
        logger.warning(f"Insert rejected by unique constraint for leadid={fields.get('leadid')}")
        raise DuplicateLeadError(fields.get('leadid'))


def find_many_by_ids(leadids: Iterable[str]) -> List[Lead]:
    """Return existing leads for the given ids, in the order the ids were given."""
    leadids = list(leadids)
    found = {lead.leadid: lead for lead in Lead.objects.filter(leadid__in=leadids)}
    return [found[leadid] for leadid in leadids if leadid in found]


def find_stale_pending(max_age_seconds: int) -> List[Lead]:
    """Pending leads created more than max_age_seconds ago, oldest first."""
    cutoff = timezone.now() - timedelta(seconds=max_age_seconds)
    return list(
        Lead.objects.filter(status=Lead.Status.PENDING, created_at__lt=cutoff)
        .order_by('created_at', 'id')
    )


def update_status(leadid: str, status: str, processing_time: Optional[int] = None) -> Lead:
    """
    Set a lead's status (and optionally its processing time).

    Raises:
        InvalidStatusError: If status is not a known Lead.Status value
        LeadNotFoundError: If no lead has this leadid
    """
    if status not in Lead.Status.values:
        raise InvalidStatusError(status)

    lead = get_by_leadid(leadid)
    lead.status = status
    update_fields = ['status', 'updated_at']
    if processing_time is not None:
        lead.processing_time = max(int(processing_time), 0)
        update_fields.append('processing_time')
    lead.save(update_fields=update_fields)
    return lead


def delete(leadid: str) -> None:
    """
    Raises:
        LeadNotFoundError: If no lead has this leadid
    """
    deleted, _ = Lead.objects.filter(leadid=leadid).delete()
    if not deleted:
        raise LeadNotFoundError(leadid)


def list_filtered(
    lead_filter: Optional[LeadFilter] = None,
    sort_by: str = 'created_at',
    sort_order: str = 'desc',
    page: int = 1,
    limit: int = 50,
) -> Page:
    """Return one page of leads; page numbers are 1-based."""
    page = max(int(page), 1)
    limit = max(int(limit), 1)
    ordering = f"-{sort_by}" if sort_order == 'desc' else sort_by
    skip = (page - 1) * limit

    queryset = _filtered(lead_filter)
    items = list(queryset.order_by(ordering, '-id')[skip:skip + limit])
    return Page(items=items, page=page, limit=limit, total=queryset.count())


def count_filtered(lead_filter: Optional[LeadFilter] = None) -> int:
    return _filtered(lead_filter).count()


def aggregate_overview(lead_filter: Optional[LeadFilter] = None) -> dict:
    """Counts per status and the mean processing time of matching leads."""
    stats = _filtered(lead_filter).aggregate(
        totalLeads=Count('id'),
        pendingLeads=Count('id', filter=Q(status=Lead.Status.PENDING)),
        processedLeads=Count('id', filter=Q(status=Lead.Status.PROCESSED)),
        failedLeads=Count('id', filter=Q(status=Lead.Status.FAILED)),
        avgProcessingTime=Avg('processing_time'),
    )
    stats['avgProcessingTime'] = stats['avgProcessingTime'] or 0
    return stats


def aggregate_top_by(field: str, lead_filter: Optional[LeadFilter] = None, top_n: int = 10) -> List[dict]:
    """Most frequent values of city or category as [{_id, count}]."""
    if field not in TOP_BY_FIELDS:
        raise ValueError(f"Cannot aggregate leads by {field!r}")

    rows = (
        _filtered(lead_filter)
        .order_by()
        .values(field)
        .annotate(count=Count('id'))
        .order_by('-count', field)[:top_n]
    )
    return [{'_id': row[field], 'count': row['count']} for row in rows]
