"""
Validation service for inbound lead fields.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from django.utils.dateparse import parse_datetime

from leads.exceptions import LeadValidationError
from leads.serializers import LeadInputSerializer, flatten_errors

logger = logging.getLogger(__name__)

DNC_FIELDS = ('dncmobile', 'dncphone')


def to_plain_dict(data: Any) -> Any:
    """
    Flatten a QueryDict (query string or form body) into a plain dict.

    For repeated keys the last value wins. Anything that is not a mapping
    is returned unchanged so the serializer can report it.
    """
    if hasattr(data, 'dict'):
        return data.dict()
    if isinstance(data, dict):
        return dict(data)
    return data


def coerce_raw_input(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerce numeric-looking DNC flags and timestamp-like dates before validation.

    - '0' / ' 1 ' become 0 / 1; other values are left for the rules to reject
    - '2024-01-15T10:00:00Z' becomes '2024-01-15'
    """
    coerced = dict(data)

    for field in DNC_FIELDS:
        value = coerced.get(field)
        if isinstance(value, str) and value.strip().lstrip('-').isdigit():
            coerced[field] = int(value.strip())

    value = coerced.get('date')
    if isinstance(value, str) and 'T' in value:
        try:
            parsed = parse_datetime(value.strip())
        except ValueError:
            parsed = None
        if parsed is not None:
            coerced['date'] = parsed.date().isoformat()

    return coerced


def validate_lead(raw: Any) -> Tuple[Optional[Dict[str, Any]], List[Dict[str, str]]]:
    """
    Validates raw lead fields against the lead input rules.

    All violations are collected in one pass. Unknown keys are dropped.

    Args:
        raw: Query parameters or request body

    Returns:
        Tuple of (lead_data, errors)
        - lead_data: Canonical lead fields if valid, None otherwise
        - errors: List of {field, message} entries, empty when valid
    """
    data = to_plain_dict(raw)
    if isinstance(data, dict):
        data = coerce_raw_input(data)

    serializer = LeadInputSerializer(data=data)
    if not serializer.is_valid():
        errors = flatten_errors(serializer.errors)
        logger.debug(f"Validation failed with {len(errors)} error(s): {errors}")
        return None, errors

    logger.debug("Validation passed")
    return dict(serializer.validated_data), []


def require_valid_lead(raw: Any) -> Dict[str, Any]:
    """
    Like validate_lead, but raises instead of returning errors.

    Raises:
        LeadValidationError: Carrying every {field, message} violation
    """
    lead_data, errors = validate_lead(raw)
    if errors:
        raise LeadValidationError(errors)
    return lead_data
