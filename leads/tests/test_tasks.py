"""
Unit tests for Celery tasks.
"""
import pytest
from datetime import timedelta
from unittest.mock import patch
import httpx
from django.utils import timezone

from leads.models import Lead
from leads.tasks import sweep_pending_leads


def age(lead, **delta):
    Lead.objects.filter(pk=lead.pk).update(created_at=timezone.now() - timedelta(**delta))


@pytest.mark.django_db
class TestSweepPendingLeads:
    """Tests for the sweep_pending_leads task."""

    @patch('leads.services.dispatcher.httpx.post')
    def test_stale_leads_forwarded(self, mock_post, make_lead):
        """Test stale pending leads are forwarded once and counted."""
        mock_post.side_effect = [httpx.Response(200, json={'ok': True}), httpx.Response(500)]
        age(make_lead(leadid='S1'), minutes=30)
        age(make_lead(leadid='S2'), minutes=20)

        summary = sweep_pending_leads(max_age_seconds=60)

        assert summary == {'swept': 2, 'processed': 1, 'failed': 1}
        assert Lead.objects.get(leadid='S1').status == Lead.Status.PROCESSED
        assert Lead.objects.get(leadid='S2').status == Lead.Status.FAILED
        assert mock_post.call_count == 2

    @patch('leads.services.dispatcher.httpx.post')
    def test_fresh_pending_lead_left_alone(self, mock_post, make_lead):
        make_lead(leadid='FRESH')

        assert sweep_pending_leads(max_age_seconds=60) == {'swept': 0, 'processed': 0, 'failed': 0}
        assert Lead.objects.get(leadid='FRESH').status == Lead.Status.PENDING
        mock_post.assert_not_called()

    @patch('leads.services.dispatcher.httpx.post')
    def test_settled_leads_never_resent(self, mock_post, make_lead):
        age(make_lead(leadid='P1', status='processed'), hours=2)
        age(make_lead(leadid='F1', status='failed'), hours=2)

        assert sweep_pending_leads(max_age_seconds=60)['swept'] == 0
        mock_post.assert_not_called()

    @patch('leads.services.dispatcher.httpx.post')
    def test_default_age_from_settings(self, mock_post, make_lead, settings):
        mock_post.return_value = httpx.Response(200)
        settings.LEAD_FORWARDING = dict(settings.LEAD_FORWARDING, PENDING_SWEEP_AGE=3600)
        age(make_lead(leadid='OLD'), hours=2)
        age(make_lead(leadid='RECENT'), minutes=10)

        summary = sweep_pending_leads()

        assert summary['swept'] == 1
        assert Lead.objects.get(leadid='RECENT').status == Lead.Status.PENDING
