def test_get_engine_kwargs_sqlite_has_check_same_thread():
    from flowboard.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./flowboard.db")
    assert kwargs["connect_args"]["check_same_thread"] is False
    # SQLite should not require pool sizing knobs.
    assert "pool_size" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_reads_pool_env(monkeypatch):
    from flowboard.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "7")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "3")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "12")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_size"] == 7
    assert kwargs["max_overflow"] == 3
    assert kwargs["pool_timeout"] == 12


def test_debug_env_enables_echo(monkeypatch):
    from flowboard.database import database as db

    monkeypatch.setenv("DEBUG", "true")
    assert db.get_engine_kwargs("sqlite://")["echo"] is True
    monkeypatch.setenv("DEBUG", "false")
    assert db.get_engine_kwargs("sqlite://")["echo"] is False


def test_is_sqlite_url():
    from flowboard.database import database as db

    assert db._is_sqlite_url("sqlite:///./flowboard.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False


def test_init_db_creates_tables(tmp_path):
    from sqlalchemy import inspect
    from flowboard.database import database as db

    engine = db.build_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
    db.init_db(bind=engine)

    tables = set(inspect(engine).get_table_names())
    assert {"tasks", "users"} <= tables
    columns = {c["name"] for c in inspect(engine).get_columns("tasks")}
    assert {"owner_id", "order", "due_date", "due_time", "parent_id", "tags"} <= columns
