"""
System endpoint and CLI tests.
"""

from sahara.models import Country, Room, Tour, User


class TestHealth:

    def test_health_degraded_without_stripe_key(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "degraded"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["payment_gateway"]["status"] == "degraded"
        assert "STRIPE_SECRET_KEY" in body["checks"]["payment_gateway"]["warning"]

    def test_health_never_leaks_secrets(self, client, db_session):
        text = client.get("/api/health").get_data(as_text=True)
        assert "whsec_test" not in text

    def test_version(self, client):
        body = client.get("/api/version").get_json()
        assert body["api_version"] == "1.0.0"
        assert "python_version" in body


class TestCli:

    def test_catalog_seed_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["catalog", "seed"])
        assert "PASS" in first.output
        assert db_session.query(Country).count() == 2
        assert db_session.query(Tour).count() == 2
        assert db_session.query(Room).count() == 2

        second = runner.invoke(args=["catalog", "seed"])
        assert "SKIP" in second.output
        assert db_session.query(Tour).count() == 2

    def test_system_init_creates_admin_once(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=["system", "init"])
        again = runner.invoke(args=["system", "init"])

        admins = db_session.query(User).filter_by(role="admin").all()
        assert len(admins) == 1
        assert "existing admin" in again.output

    def test_users_create_rejects_weak_password(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create", "--username", "guide", "--email", "guide@example.com", "--password", "weak",
        ])
        assert "FAIL" in result.output
        assert db_session.query(User).count() == 0
