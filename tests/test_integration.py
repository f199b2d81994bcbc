"""Integration tests for complete workflows."""
from privcache.models.grant_tables import DBGrant
from tests.conftest import ADMIN_HEADERS, client


class TestIntegrationWorkflows:
    """Test complete end-to-end workflows."""

    def test_reload_and_inspect_workflow(self, seeded_db, fresh_cache):
        """Test complete workflow: empty cache, reload from the grant tables, inspect."""
        # Step 1: Nothing published yet
        response = client.get("/privileges/status", headers=ADMIN_HEADERS)
        assert response.status_code == 200
        assert response.json()["state"] == "empty"
        assert response.json()["generation"] == 0
        assert response.json()["snapshot"] is None

        # Step 2: Reload
        response = client.post("/privileges/reload", headers=ADMIN_HEADERS)
        assert response.status_code == 200
        summary = response.json()
        assert summary["generation"] == 1
        assert summary["counts"] == {"user": 2, "db": 2, "tables_priv": 1, "columns_priv": 2}
        assert summary["timestamp_issues"] == 0

        # Step 3: Status reflects the published snapshot
        response = client.get("/privileges/status", headers=ADMIN_HEADERS)
        data = response.json()
        assert data["state"] == "ready"
        assert data["generation"] == 1
        assert data["snapshot"]["counts"] == summary["counts"]
        assert data["last_error"] is None

        # Step 4: Records come back in load order
        response = client.get("/privileges/snapshot", headers=ADMIN_HEADERS)
        assert response.status_code == 200
        snapshot = response.json()
        assert [(u["host"], u["user"]) for u in snapshot["users"]] == [("%", "app"), ("localhost", "root")]
        assert snapshot["users"][1]["privilege_names"] == ["SELECT", "SUPER"]
        assert [d["db"] for d in snapshot["dbs"]] == ["crm", "shop"]
        assert [c["column_name"] for c in snapshot["columns_priv"]] == ["note", "status"]

    def test_set_columns_and_timestamps(self, seeded_db, fresh_cache):
        """Test table and column grants are expanded into privilege names."""
        client.post("/privileges/reload", headers=ADMIN_HEADERS)
        snapshot = client.get("/privileges/snapshot", headers=ADMIN_HEADERS).json()

        table = snapshot["tables_priv"][0]
        assert table["table_name"] == "orders"
        assert table["grantor"] == "root@localhost"
        assert table["table_privilege_names"] == ["CREATE_VIEW", "SELECT"]
        assert table["column_privilege_names"] == ["UPDATE"]
        assert table["granted_at"].startswith("2024-03-01T12:00:00")

        note, status = snapshot["columns_priv"]
        assert note["privilege_names"] == ["SELECT", "UPDATE"]
        assert note["granted_at"].startswith("0001-01-01")
        assert status["privilege_names"] == ["UPDATE"]

    def test_password_hash_not_exposed(self, seeded_db, fresh_cache):
        """Test user records are served without the password hash."""
        client.post("/privileges/reload", headers=ADMIN_HEADERS)
        snapshot = client.get("/privileges/snapshot", headers=ADMIN_HEADERS).json()
        for user in snapshot["users"]:
            assert "password_hash" not in user
            assert "*ROOT" not in user.values()

    def test_repeated_reloads_increment_generation(self, seeded_db, fresh_cache):
        """Test every successful reload publishes a new generation."""
        for expected in (1, 2, 3):
            response = client.post("/privileges/reload", headers=ADMIN_HEADERS)
            assert response.json()["generation"] == expected
        assert fresh_cache.generation == 3

    def test_reload_sees_new_grants(self, seeded_db, fresh_cache):
        """Test a grant added between reloads shows up only after the next reload."""
        client.post("/privileges/reload", headers=ADMIN_HEADERS)
        first = fresh_cache.snapshot

        seeded_db.add(DBGrant(host="%", db="audit", user="app", select_priv="Y"))
        seeded_db.commit()
        assert [d.db for d in fresh_cache.snapshot.dbs] == ["crm", "shop"]

        client.post("/privileges/reload", headers=ADMIN_HEADERS)
        assert [d.db for d in fresh_cache.snapshot.dbs] == ["audit", "crm", "shop"]
        # The first snapshot is untouched
        assert [d.db for d in first.dbs] == ["crm", "shop"]

    def test_health_reports_cache(self, seeded_db, fresh_cache):
        """Test the health check reports the cache generation."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["checks"]["cache"]["status"] == "warning"

        client.post("/privileges/reload", headers=ADMIN_HEADERS)
        response = client.get("/health")
        cache_check = response.json()["checks"]["cache"]
        assert cache_check["status"] == "healthy"
        assert cache_check["state"] == "ready"
        assert cache_check["generation"] == 1

    def test_root(self):
        """Test the root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        assert "Operational" in response.json()["status"]
