"""
Database engine, session factory and schema bootstrap for the sql backend
"""
import os
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqlalchemy.orm import declarative_base, sessionmaker
from sitepulse.config import get_settings
from sitepulse.utils.logger import log

settings = get_settings()


def _absolute_sqlite_url(url: str) -> str:
    """sqlite:///./x.db -> sqlite:////abs/path/x.db so a cwd change can't move the file"""
    if not url.startswith("sqlite:///") or url.startswith("sqlite:////"):
        return url
    path = url[len("sqlite:///"):]
    if path == ":memory:":
        return url
    return "sqlite:///" + os.path.abspath(path)


def build_engine(url: str) -> Engine:
    url = _absolute_sqlite_url(url)
    if url.startswith("sqlite"):
        bind = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 60},
            poolclass=NullPool,
            pool_pre_ping=True
        )
    else:
        # Small pool: every request opens and closes its own session
        bind = create_engine(
            url,
            pool_pre_ping=True,
            pool_size=3,
            max_overflow=5,
            pool_recycle=300,
        )
    enable_sqlite_foreign_keys(bind)
    return bind


def enable_sqlite_foreign_keys(bind):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    if bind.dialect.name != "sqlite":
        return

    @event.listens_for(bind, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def _migrate_missing_columns(bind):
    """Add model columns missing from tables that already exist.

    create_all() only creates missing tables.
    """
    inspector = inspect(bind)
    statements = []
    for table_name, table in Base.metadata.tables.items():
        if not inspector.has_table(table_name):
            continue
        existing = {c["name"] for c in inspector.get_columns(table_name)}
        for col in table.columns:
            if col.name in existing:
                continue
            col_type = col.type.compile(dialect=bind.dialect)
            statements.append(f"ALTER TABLE {table_name} ADD COLUMN {col.name} {col_type}")

    if not statements:
        return
    with bind.begin() as conn:
        for sql in statements:
            log.info(f"Auto-migrating: {sql}")
            conn.execute(text(sql))


def init_db(bind=None):
    """Create the sites and Search Console tables, then add any new columns."""
    # Register models on Base.metadata before create_all
    import sitepulse.models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    _migrate_missing_columns(bind)
