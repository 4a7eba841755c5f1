"""
No-show accounting and blacklist tests.
"""

import pytest

from salonbook.models import Customer, TenantSettings
from salonbook.services import no_show_service, settings_service
from salonbook.services.no_show_service import TenantNotFoundError


class TestRecordNoShow:

    def test_reaching_threshold_blacklists(self, db_session, customer, make_appointment):
        customer.no_show_count = 2
        db_session.commit()
        appt = make_appointment(status="no_show")

        updated = no_show_service.record_no_show(appt)

        assert updated is not None
        assert updated.no_show_count == 3
        assert updated.is_blacklisted is True
        assert updated.blacklisted_at is not None

    def test_below_threshold_only_counts(self, db_session, customer, make_appointment):
        appt = make_appointment(status="no_show")

        updated = no_show_service.record_no_show(appt)

        assert updated.no_show_count == 1
        assert updated.is_blacklisted is False
        assert updated.blacklisted_at is None

    def test_blacklisted_at_is_stamped_once(self, db_session, customer, make_appointment):
        customer.no_show_count = 2
        db_session.commit()

        first = no_show_service.record_no_show(make_appointment(status="no_show"))
        stamped = first.blacklisted_at

        second = no_show_service.record_no_show(make_appointment(status="no_show"))
        assert second.no_show_count == 4
        assert second.is_blacklisted is True
        assert second.blacklisted_at == stamped

    def test_missing_settings_row_uses_default_threshold(self, db_session, tenant, customer, make_appointment):
        db_session.query(TenantSettings).delete()
        customer.no_show_count = 2
        db_session.commit()

        updated = no_show_service.record_no_show(make_appointment(status="no_show"))

        assert updated.is_blacklisted is True

    def test_custom_threshold(self, db_session, tenant, customer, make_appointment):
        settings_service.set_blacklist_threshold(tenant.id, 1)

        updated = no_show_service.record_no_show(make_appointment(status="no_show"))

        assert updated.no_show_count == 1
        assert updated.is_blacklisted is True

    def test_no_phone_is_noop(self, db_session, customer, make_appointment):
        appt = make_appointment(status="no_show", customer_phone=None)

        assert no_show_service.record_no_show(appt) is None

        db_session.refresh(customer)
        assert customer.no_show_count == 0

    def test_unknown_phone_is_noop(self, db_session, customer, make_appointment):
        appt = make_appointment(status="no_show", customer_phone="5559999999")

        assert no_show_service.record_no_show(appt) is None

    def test_phone_match_is_tenant_scoped(self, db_session, other_tenant, customer, make_appointment):
        appt = make_appointment(status="no_show", tenant_id=other_tenant.id)

        assert no_show_service.record_no_show(appt) is None

        db_session.refresh(customer)
        assert customer.no_show_count == 0


class TestSettings:

    def test_rejects_non_positive_threshold(self, db_session, tenant):
        with pytest.raises(ValueError):
            settings_service.set_blacklist_threshold(tenant.id, 0)

    def test_null_threshold_falls_back(self, db_session, tenant):
        settings_service.set_blacklist_threshold(tenant.id, None)

        assert settings_service.get_blacklist_threshold(tenant.id) == 3


class TestCheckBlacklist:

    def test_reports_customer_state(self, db_session, tenant, customer):
        customer.no_show_count = 4
        customer.is_blacklisted = True
        db_session.commit()

        result = no_show_service.check_blacklist(tenant.slug, customer.phone)

        assert result == {"is_blacklisted": True, "no_show_count": 4}

    def test_unknown_phone_is_clean(self, db_session, tenant):
        result = no_show_service.check_blacklist(tenant.slug, "5550000000")

        assert result == {"is_blacklisted": False, "no_show_count": 0}

    def test_unknown_tenant(self, db_session):
        with pytest.raises(TenantNotFoundError):
            no_show_service.check_blacklist("nope", "5550000000")
