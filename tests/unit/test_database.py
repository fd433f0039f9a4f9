"""Unit tests for migrations and the health check."""

from unittest.mock import AsyncMock, patch

from review_api.database import MIGRATIONS_DIR, health_check, run_migrations


class TestRunMigrations:
    """Tests for run_migrations."""

    async def test_applies_pending_files_in_order(self, mock_pool, tmp_path):
        pool, conn = mock_pool
        (tmp_path / "002_sessions.sql").write_text("CREATE TABLE sessions ();")
        (tmp_path / "001_users.sql").write_text("CREATE TABLE users ();")
        conn.fetch.return_value = []

        with patch("review_api.database.get_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = pool
            applied = await run_migrations(tmp_path)

        assert applied == ["001_users.sql", "002_sessions.sql"]
        assert conn.transactions == 2
        statements = [call[0][0] for call in conn.execute.call_args_list]
        assert "schema_migrations" in statements[0]
        assert statements[1] == "CREATE TABLE users ();"
        assert statements[3] == "CREATE TABLE sessions ();"

    async def test_skips_recorded_files(self, mock_pool, tmp_path):
        pool, conn = mock_pool
        (tmp_path / "001_users.sql").write_text("CREATE TABLE users ();")
        (tmp_path / "002_sessions.sql").write_text("CREATE TABLE sessions ();")
        conn.fetch.return_value = [{"filename": "001_users.sql"}]

        with patch("review_api.database.get_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = pool
            applied = await run_migrations(tmp_path)

        assert applied == ["002_sessions.sql"]

    async def test_missing_directory_is_a_no_op(self, tmp_path):
        with patch("review_api.database.get_pool", new_callable=AsyncMock) as mock_get_pool:
            assert await run_migrations(tmp_path / "absent") == []

        mock_get_pool.assert_not_awaited()

    def test_shipped_migrations_create_both_tables(self):
        sql = "\n".join(f.read_text() for f in sorted(MIGRATIONS_DIR.glob("*.sql")))

        assert "CREATE TABLE IF NOT EXISTS users" in sql
        assert "CREATE TABLE IF NOT EXISTS sessions" in sql
        assert "ON DELETE CASCADE" in sql


class TestHealthCheck:
    """Tests for health_check."""

    async def test_healthy(self, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.return_value = 1

        with patch("review_api.database.get_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = pool
            assert await health_check() is True

    async def test_uninitialized_pool_is_unhealthy(self):
        with patch(
            "review_api.database.get_pool",
            new_callable=AsyncMock,
            side_effect=RuntimeError("Database pool not initialized"),
        ):
            assert await health_check() is False
