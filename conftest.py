import os
import sys
from datetime import date

import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lead_relay.settings')
os.environ.setdefault('USE_SQLITE_FOR_TESTS', 'true')


@pytest.fixture(autouse=True)
def clear_throttle_cache():
    """Reset rate-limit counters between tests."""
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def valid_lead_payload():
    """Return a valid lead payload for testing."""
    return {
        'leadid': 'L1',
        'leadtype': 'company',
        'name': 'Acme',
        'date': '2024-01-15',
        'time': '10:30:00',
        'category': 'Digital Marketing Services',
        'city': 'Mumbai',
        'dncmobile': 0,
        'dncphone': 0,
    }


@pytest.fixture
def full_lead_payload():
    """Return a payload with every optional field filled in."""
    return {
        'leadid': 'JD-20240115-0042',
        'leadtype': 'category',
        'prefix': 'Mr',
        'name': '  Rahul   Sharma ',
        'mobile': '+91 98765 43210',
        'phone': '(022) 2345-6789',
        'email': 'Rahul.Sharma@Example.COM',
        'date': '2024-01-15',
        'time': '09:05:30',
        'category': 'Whatsapp Marketing Services',
        'city': 'Mumbai',
        'area': 'Andheri   West',
        'brancharea': 'Andheri',
        'pincode': '400053',
        'branchpin': '400058',
        'dncmobile': '0',
        'dncphone': '1',
        'company': 'Sharma Traders',
        'parentid': 'P-100',
        'utm_source': 'ignored',
    }


@pytest.fixture
def make_lead(db):
    """Factory creating stored leads with sensible defaults."""
    from leads.models import Lead

    counter = {'n': 0}

    def _make_lead(**overrides):
        counter['n'] += 1
        fields = {
            'leadid': f"LEAD-{counter['n']}",
            'leadtype': Lead.LeadType.COMPANY,
            'name': 'Acme',
            'mobile': '9876543210',
            'date': date(2024, 1, 15),
            'time': '10:30:00',
            'category': 'Digital Marketing Services',
            'city': 'Mumbai',
            'dncmobile': 0,
            'dncphone': 0,
        }
        fields.update(overrides)
        return Lead.objects.create(**fields)

    return _make_lead
