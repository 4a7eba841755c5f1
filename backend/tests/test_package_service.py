"""
Package settlement tests.

Verifies:
- One unit moves per deduct/refund, and refund is the exact inverse
- Package status follows its usage rows in both directions
- Soft failures (no package, malformed package_info, missing or exhausted
  usage row) are no-ops that never raise
"""

import json

import pytest

from salonbook.models import CustomerPackage, CustomerPackageUsage, PackageReference
from salonbook.services import package_service
from salonbook.validation import PackageInfoError


def _package_info(usage, **extra):
    info = {
        "usageId": usage.id,
        "customerPackageId": usage.customer_package_id,
        "packageName": "Lazer 5 Seans",
    }
    info.update(extra)
    return info


# =============================================================================
# PACKAGE REFERENCE DECODING
# =============================================================================


class TestPackageReference:

    def test_none_and_blank_mean_direct_payment(self):
        assert PackageReference.decode(None) is None
        assert PackageReference.decode("") is None
        assert PackageReference.decode("   ") is None
        assert PackageReference.decode("null") is None

    def test_object_and_string_decode_the_same(self):
        raw = {"usageId": 4, "customerPackageId": "2", "packageName": "Cilt Bakimi"}
        from_obj = PackageReference.decode(raw)
        from_str = PackageReference.decode(json.dumps(raw))
        assert from_obj == from_str == PackageReference(4, 2, "Cilt Bakimi")

    def test_snake_case_keys_accepted(self):
        ref = PackageReference.decode({"usage_id": "9", "customer_package_id": 3})
        assert ref.usage_id == 9
        assert ref.customer_package_id == 3
        assert ref.package_name is None

    @pytest.mark.parametrize(
        "raw",
        ["{not json", "[1, 2]", {"packageName": "x"}, {"usageId": "abc"}, 42],
    )
    def test_unusable_values_raise(self, raw):
        with pytest.raises(PackageInfoError):
            PackageReference.decode(raw)

    def test_to_dict_uses_booking_app_keys(self):
        assert PackageReference(1, 2, "P").to_dict() == {
            "usageId": 1,
            "customerPackageId": 2,
            "packageName": "P",
        }


# =============================================================================
# DEDUCT / REFUND
# =============================================================================


class TestDeductRefund:

    def test_deduct_moves_one_unit(self, db_session, make_appointment, package_usage):
        appt = make_appointment(package_info=_package_info(package_usage))

        assert package_service.deduct(appt) is True

        usage = db_session.get(CustomerPackageUsage, package_usage.id)
        db_session.refresh(usage)
        assert usage.remaining_quantity == 2
        assert usage.used_quantity == 3
        assert usage.used_quantity + usage.remaining_quantity == usage.total_quantity

    def test_refund_is_inverse_of_deduct(self, db_session, make_appointment, package_usage):
        appt = make_appointment(package_info=_package_info(package_usage))

        assert package_service.deduct(appt) is True
        assert package_service.refund(appt) is True

        usage = db_session.get(CustomerPackageUsage, package_usage.id)
        db_session.refresh(usage)
        assert (usage.used_quantity, usage.remaining_quantity) == (2, 3)

    def test_string_package_info_is_settled(self, db_session, make_appointment, package_usage):
        appt = make_appointment(package_info=json.dumps(_package_info(package_usage)))

        assert package_service.deduct(appt) is True

        db_session.refresh(package_usage)
        assert package_usage.remaining_quantity == 2

    def test_direct_payment_is_noop(self, db_session, make_appointment, package_usage):
        appt = make_appointment(package_info=None)

        assert package_service.deduct(appt) is False
        assert package_service.refund(appt) is False

        db_session.refresh(package_usage)
        assert package_usage.remaining_quantity == 3

    def test_malformed_package_info_is_noop(self, db_session, make_appointment, package_usage):
        appt = make_appointment(package_info="{broken")

        assert package_service.deduct(appt) is False

        db_session.refresh(package_usage)
        assert package_usage.remaining_quantity == 3

    def test_missing_usage_row_is_noop(self, db_session, make_appointment, package_usage):
        appt = make_appointment(package_info={"usageId": package_usage.id + 1000})

        assert package_service.deduct(appt) is False
        assert package_service.refund(appt) is False

    def test_exhausted_usage_never_goes_negative(self, db_session, make_appointment, package_usage):
        package_usage.used_quantity = 5
        package_usage.remaining_quantity = 0
        db_session.commit()
        appt = make_appointment(package_info=_package_info(package_usage))

        assert package_service.deduct(appt) is False

        db_session.refresh(package_usage)
        assert package_usage.remaining_quantity == 0
        assert package_usage.used_quantity == 5

    def test_refund_with_nothing_used_is_noop(self, db_session, make_appointment, package_usage):
        package_usage.used_quantity = 0
        package_usage.remaining_quantity = 5
        db_session.commit()
        appt = make_appointment(package_info=_package_info(package_usage))

        assert package_service.refund(appt) is False

        db_session.refresh(package_usage)
        assert package_usage.used_quantity == 0


# =============================================================================
# PACKAGE STATUS
# =============================================================================


class TestPackageStatus:

    def test_last_unit_completes_package_and_refund_reactivates(
        self, db_session, make_appointment, package_usage
    ):
        package_usage.used_quantity = 4
        package_usage.remaining_quantity = 1
        db_session.commit()
        appt = make_appointment(package_info=_package_info(package_usage))
        pkg_id = package_usage.customer_package_id

        assert package_service.deduct(appt) is True
        pkg = db_session.get(CustomerPackage, pkg_id)
        db_session.refresh(pkg)
        assert pkg.status == "completed"

        assert package_service.refund(appt) is True
        db_session.refresh(pkg)
        assert pkg.status == "active"

    def test_package_stays_active_while_another_item_remains(
        self, db_session, make_appointment, package_usage
    ):
        package_usage.used_quantity = 4
        package_usage.remaining_quantity = 1
        other = CustomerPackageUsage(
            customer_package_id=package_usage.customer_package_id,
            item_type="product",
            item_name="Krem",
            total_quantity=1,
            used_quantity=0,
            remaining_quantity=1,
        )
        db_session.add(other)
        db_session.commit()
        appt = make_appointment(package_info=_package_info(package_usage))

        assert package_service.deduct(appt) is True

        pkg = db_session.get(CustomerPackage, package_usage.customer_package_id)
        db_session.refresh(pkg)
        assert pkg.status == "active"
