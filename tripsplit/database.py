from contextlib import contextmanager

import psycopg2
import psycopg2.extras
import psycopg2.pool

from tripsplit import config


class Database:
    """PostgreSQL connection pool with an explicit open/close lifecycle."""

    def __init__(self, dsn=None, sslmode=None, minconn=None, maxconn=None):
        self.dsn = dsn or config.DATABASE_URL
        self.sslmode = sslmode or config.DATABASE_SSLMODE
        self.minconn = minconn or config.DB_POOL_MIN
        self.maxconn = maxconn or config.DB_POOL_MAX
        self._pool = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self):
        if self._pool is not None:
            return
        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(
                self.minconn, self.maxconn, self.dsn, sslmode=self.sslmode
            )
        except psycopg2.Error as e:
            print(f"❌ Database connection failed: {e}")
            raise RuntimeError("Unable to connect to the database") from e
        print("✅ Database pool opened")

    def close(self):
        if self._pool is None:
            return
        self._pool.closeall()
        self._pool = None
        print("✅ Database pool closed")

    @contextmanager
    def connection(self):
        """Borrow a pooled connection; commit on success, rollback on error."""
        if self._pool is None:
            raise RuntimeError("Database is not open")
        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    @contextmanager
    def cursor(self):
        with self.connection() as conn:
            cur = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            try:
                yield cur
            finally:
                cur.close()

    # ============================================================
    # ✅ Initialize All Tables (idempotent)
    # ============================================================
    def initialize(self):
        with self.cursor() as cur:
            # Trips keep people and expenses as ordered JSON documents
            cur.execute("""
            CREATE TABLE IF NOT EXISTS trips (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                currency TEXT NOT NULL DEFAULT 'BDT',
                people JSONB NOT NULL DEFAULT '[]',
                expenses JSONB NOT NULL DEFAULT '[]',
                created_at BIGINT NOT NULL,
                updated_at BIGINT NOT NULL
            );
            """)
            cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_trips_updated_at ON trips(updated_at)
            """)

            cur.execute("""
            CREATE TABLE IF NOT EXISTS shared_trips (
                id TEXT PRIMARY KEY,
                trip_data TEXT NOT NULL,
                created_at BIGINT NOT NULL,
                expires_at BIGINT NOT NULL
            );
            """)
            cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_expires_at ON shared_trips(expires_at)
            """)
        print("✅ Database initialized")
