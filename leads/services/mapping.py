"""
Mapping service for transforming leads to the forwarding API format.

Absent or empty values are omitted from the outgoing payload; no key is
ever sent with a null or empty value.
"""
import logging
from datetime import date, datetime, time, timezone as dt_timezone
from typing import Any, Mapping, Optional

from django.utils import timezone

logger = logging.getLogger(__name__)

# Lead fields copied as-is, keyed by their name in the outgoing payload.
PASSTHROUGH_FIELDS = {
    'category': 'category',
    'city': 'city',
    'area': 'area',
    'branch-area': 'brancharea',
    'pincode': 'pincode',
}


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            logger.debug(f"Unparseable lead date: {value!r}")
    return None


def _as_time(value: Any) -> Optional[time]:
    if not value:
        return None
    try:
        hours, minutes, seconds = (int(part) for part in str(value).split(':'))
        return time(hours, minutes, seconds)
    except ValueError:
        logger.debug(f"Unparseable lead time: {value!r}")
        return None


def format_enquiry_datetime(lead_date: Any, lead_time: Any = None) -> Optional[str]:
    """
    Combine a lead's date and time into an ISO-8601 UTC timestamp.

    The time of day is read in the configured TIME_ZONE. Without a usable
    time the date's midnight is used.

    Returns:
        e.g. '2024-01-15T10:30:00.000Z', or None when there is no date
    """
    day = _as_date(lead_date)
    if day is None:
        return None

    time_of_day = _as_time(lead_time)
    if time_of_day is None:
        moment = datetime.combine(day, time(0, 0, 0), tzinfo=dt_timezone.utc)
    else:
        moment = timezone.make_aware(
            datetime.combine(day, time_of_day),
            timezone.get_default_timezone(),
        )
    moment = moment.astimezone(dt_timezone.utc)
    return moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def transform_lead_data(lead: Mapping[str, Any]) -> dict:
    """
    Transforms a lead into the payload expected by the forwarding APIs.

    - name: "{prefix} {name}" when a prefix is present, else name
    - phone-number: mobile, falling back to phone
    - email-address: email
    - enquiry-date-time: date combined with time (ISO-8601)
    - category, city, area, branch-area, pincode: copied

    Args:
        lead: Lead field values (see Lead.as_forwarding_data)

    Returns:
        Outgoing payload with empty values omitted
    """
    payload = {}

    name = lead.get('name')
    prefix = lead.get('prefix')
    if prefix and name:
        payload['name'] = f"{prefix} {name}".strip()
    elif name:
        payload['name'] = name

    if lead.get('mobile'):
        payload['phone-number'] = lead['mobile']
    elif lead.get('phone'):
        payload['phone-number'] = lead['phone']

    if lead.get('email'):
        payload['email-address'] = lead['email']

    enquiry = format_enquiry_datetime(lead.get('date'), lead.get('time'))
    if enquiry:
        payload['enquiry-date-time'] = enquiry

    for target, source in PASSTHROUGH_FIELDS.items():
        if lead.get(source):
            payload[target] = lead[source]

    logger.debug(f"Mapped lead {lead.get('leadid')} to payload with {len(payload)} fields")
    return payload
