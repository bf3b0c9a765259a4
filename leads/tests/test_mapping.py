"""
Unit tests for mapping service.
"""
from datetime import date

import pytest

from leads.services.mapping import format_enquiry_datetime, transform_lead_data


@pytest.fixture
def stored_lead():
    """Forwarding data of a stored lead, as produced by Lead.as_forwarding_data."""
    return {
        'leadid': 'L1',
        'prefix': 'Mr',
        'name': 'Rahul Sharma',
        'mobile': '9876543210',
        'phone': '02223456789',
        'email': 'rahul@example.com',
        'date': date(2024, 1, 15),
        'time': '10:30:00',
        'category': 'Digital Marketing Services',
        'city': 'Mumbai',
        'area': 'Andheri West',
        'brancharea': 'Andheri',
        'pincode': '400053',
    }


class TestFormatEnquiryDatetime:
    """Tests for combining a lead's date and time."""

    def test_date_and_time_combined(self):
        assert format_enquiry_datetime(date(2024, 1, 15), '10:30:00') == '2024-01-15T10:30:00.000Z'

    def test_single_digit_hour(self):
        assert format_enquiry_datetime('2024-01-15', '9:05:00') == '2024-01-15T09:05:00.000Z'

    def test_missing_time_uses_midnight(self):
        assert format_enquiry_datetime(date(2024, 1, 15)) == '2024-01-15T00:00:00.000Z'

    @pytest.mark.parametrize('value', ['25:00:00', '10:30', 'noon'])
    def test_unusable_time_uses_midnight(self, value):
        assert format_enquiry_datetime(date(2024, 1, 15), value) == '2024-01-15T00:00:00.000Z'

    def test_missing_date(self):
        assert format_enquiry_datetime(None, '10:30:00') is None
        assert format_enquiry_datetime('not a date', '10:30:00') is None

    def test_time_read_in_configured_time_zone(self, settings):
        """Test time of day is interpreted in TIME_ZONE before conversion to UTC."""
        settings.TIME_ZONE = 'Asia/Kolkata'
        assert format_enquiry_datetime(date(2024, 1, 15), '10:30:00') == '2024-01-15T05:00:00.000Z'


class TestTransformLeadData:
    """Tests for transform_lead_data function."""

    def test_complete_lead(self, stored_lead):
        payload = transform_lead_data(stored_lead)
        assert payload == {
            'name': 'Mr Rahul Sharma',
            'phone-number': '9876543210',
            'email-address': 'rahul@example.com',
            'enquiry-date-time': '2024-01-15T10:30:00.000Z',
            'category': 'Digital Marketing Services',
            'city': 'Mumbai',
            'area': 'Andheri West',
            'branch-area': 'Andheri',
            'pincode': '400053',
        }

    def test_name_without_prefix(self, stored_lead):
        stored_lead['prefix'] = ''
        assert transform_lead_data(stored_lead)['name'] == 'Rahul Sharma'

    def test_phone_used_when_mobile_missing(self, stored_lead):
        stored_lead['mobile'] = ''
        assert transform_lead_data(stored_lead)['phone-number'] == '02223456789'

    def test_no_phone_number_at_all(self, stored_lead):
        stored_lead['mobile'] = ''
        stored_lead['phone'] = ''
        assert 'phone-number' not in transform_lead_data(stored_lead)

    def test_empty_values_omitted(self):
        """Test that no key is sent with an empty value."""
        payload = transform_lead_data({
            'leadid': 'L2',
            'name': 'Acme',
            'email': '',
            'date': date(2024, 1, 15),
            'time': '10:30:00',
            'category': 'Marketing Services',
            'city': 'Pune',
            'area': '',
            'brancharea': None,
        })
        assert set(payload) == {'name', 'enquiry-date-time', 'category', 'city'}
        assert all(value not in ('', None) for value in payload.values())

    def test_internal_fields_not_forwarded(self, stored_lead):
        payload = transform_lead_data(stored_lead)
        assert 'leadid' not in payload
        assert 'prefix' not in payload
        assert 'brancharea' not in payload
