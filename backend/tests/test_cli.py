"""
CLI command tests (flask tenants / ledger / tokens).
"""

from salonbook.models import Tenant, TenantSettings, Transaction
from salonbook.services import auth_service


def test_tenants_create(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "tenants", "create", "--name", "Salon C", "--slug", "salon-c", "--blacklist-threshold", "4",
    ])

    assert result.exit_code == 0, result.output
    assert "PASS" in result.output
    tenant = db_session.query(Tenant).filter_by(slug="salon-c").one()
    settings = db_session.query(TenantSettings).filter_by(tenant_id=tenant.id).one()
    assert settings.blacklist_threshold == 4


def test_tenants_create_duplicate_slug(app, tenant):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["tenants", "create", "--name", "Again", "--slug", tenant.slug])

    assert result.exit_code == 1
    assert "FAIL" in result.output


def test_ledger_missing_and_backfill(app, db_session, tenant, make_appointment):
    make_appointment(status="completed", price=75, date="2026-10-02")
    runner = app.test_cli_runner()

    result = runner.invoke(args=["ledger", "missing", "--tenant-id", str(tenant.id)])
    assert result.exit_code == 0, result.output
    assert "1 missing" in result.output

    result = runner.invoke(args=["ledger", "backfill", "--tenant-id", str(tenant.id), "--dry-run"])
    assert "1 transactions would be created" in result.output
    assert db_session.query(Transaction).count() == 0

    result = runner.invoke(args=["ledger", "backfill", "--tenant-id", str(tenant.id)])
    assert result.exit_code == 0, result.output
    assert "Created 1 transactions" in result.output
    assert db_session.query(Transaction).count() == 1


def test_tokens_issue(app, tenant):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["tokens", "issue", "--role", "staff", "--tenant-id", str(tenant.id), "--staff-id", "7"])

    assert result.exit_code == 0, result.output
    actor = auth_service.decode_token(result.output.strip())
    assert actor.is_staff
    assert actor.tenant_id == tenant.id
    assert actor.staff_id == 7
