"""
Concurrency tests for package deduction and ledger idempotence.

Uses a file-backed SQLite database so that worker threads get their own
connections.
"""

import os
import tempfile
import threading
import unittest

from salonbook import create_app
from salonbook.extensions import db
from salonbook.models import (
    Appointment,
    Customer,
    CustomerPackage,
    CustomerPackageUsage,
    Tenant,
    Transaction,
)
from salonbook.services import ledger_service, package_service


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 30}},
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            tenant = Tenant(name="Concurrency Salon", slug="concurrency")
            db.session.add(tenant)
            db.session.commit()
            self.tenant_id = tenant.id

            customer = Customer(tenant_id=tenant.id, first_name="Eda", phone="5551230000")
            db.session.add(customer)
            db.session.commit()

            pkg = CustomerPackage(tenant_id=tenant.id, customer_id=customer.id, package_name="Tek Seans")
            db.session.add(pkg)
            db.session.commit()
            self.package_id = pkg.id

            usage = CustomerPackageUsage(
                customer_package_id=pkg.id,
                item_name="Masaj",
                total_quantity=1,
                used_quantity=0,
                remaining_quantity=1,
            )
            db.session.add(usage)
            db.session.commit()
            self.usage_id = usage.id

            self.appointment_ids = []
            for _ in range(2):
                appt = Appointment(
                    tenant_id=tenant.id,
                    customer_id=customer.id,
                    customer_phone=customer.phone,
                    date="2026-10-20",
                    time="11:00",
                    status="completed",
                    price=300,
                    package_info={"usageId": usage.id, "customerPackageId": pkg.id},
                )
                db.session.add(appt)
                db.session.commit()
                self.appointment_ids.append(appt.id)

            direct = Appointment(
                tenant_id=tenant.id,
                customer_id=customer.id,
                date="2026-10-20",
                time="12:00",
                status="confirmed",
                price=250,
            )
            db.session.add(direct)
            db.session.commit()
            self.direct_appointment_id = direct.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_workers(self, targets):
        results = []
        errors = []
        lock = threading.Lock()
        barrier = threading.Barrier(len(targets))

        def worker(target):
            with self.app.app_context():
                try:
                    barrier.wait()
                    outcome = target()
                    with lock:
                        results.append(outcome)
                except Exception as exc:
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=(t,)) for t in targets]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results, errors

    def test_last_unit_deducted_once(self):
        def deduct(appointment_id):
            return lambda: package_service.deduct(db.session.get(Appointment, appointment_id))

        results, errors = self._run_workers([deduct(i) for i in self.appointment_ids])

        self.assertFalse(errors)
        self.assertEqual(sorted(results), [False, True])

        with self.app.app_context():
            usage = db.session.get(CustomerPackageUsage, self.usage_id)
            self.assertEqual(usage.remaining_quantity, 0)
            self.assertEqual(usage.used_quantity, 1)
            self.assertEqual(db.session.get(CustomerPackage, self.package_id).status, "completed")

    def test_appointment_transaction_recorded_once(self):
        def record():
            appt = db.session.get(Appointment, self.direct_appointment_id)
            return ledger_service.create_appointment_transaction(appt) is not None

        results, errors = self._run_workers([record, record])

        self.assertFalse(errors)
        self.assertEqual(sorted(results), [False, True])

        with self.app.app_context():
            count = (
                db.session.query(Transaction)
                .filter_by(appointment_id=self.direct_appointment_id)
                .count()
            )
            self.assertEqual(count, 1)
