"""
Domain exceptions for Lead Relay Service.
"""
from typing import List, Dict


class LeadRelayError(Exception):
    """Base class for lead pipeline errors."""
    pass


class LeadValidationError(LeadRelayError):
    """Raised when submitted lead fields violate the input rules."""

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        super().__init__(f"{len(errors)} validation error(s)")


class DuplicateLeadError(LeadRelayError):
    """Raised when a lead with the same leadid already exists."""

    def __init__(self, leadid: str):
        self.leadid = leadid
        super().__init__(f"Lead already exists: {leadid}")


class LeadNotFoundError(LeadRelayError):
    """Raised when no lead matches the requested leadid(s)."""

    def __init__(self, leadid=None):
        self.leadid = leadid
        super().__init__(f"Lead not found: {leadid}" if leadid else "Lead not found")


class InvalidStatusError(LeadRelayError):
    """Raised when a status value is not one of pending, processed, failed."""

    def __init__(self, status):
        self.status = status
        super().__init__(f"Invalid status: {status!r}")


class InvalidStateTransition(LeadRelayError):
    """Raised when an operation is not allowed in the lead's current status."""

    def __init__(self, leadid: str, current_status: str):
        self.leadid = leadid
        self.current_status = current_status
        super().__init__(f"Lead {leadid} is in status {current_status}")


class ForwardingError(LeadRelayError):
    """Raised when an external forwarding target rejects or cannot receive a lead."""

    def __init__(self, message: str, status_code=None, response_body=None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)
