"""Database engine setup and initialization."""

from pathlib import Path

import aiosqlite

from ..config import DATA_DIR

# Collections stored as whole JSON documents keyed by id
DOCUMENT_TABLES = ("modules", "workouts", "programs", "custom_exercises", "friendships")


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the database file path."""
    if data_dir is None:
        data_dir = DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / "liftsync.db"


async def _run_migrations(db: aiosqlite.Connection) -> None:
    """Run database migrations for schema updates."""
    # Child-grain tombstones arrived after the first release
    cursor = await db.execute("PRAGMA table_info(deletion_records)")
    columns = await cursor.fetchall()
    column_names = {col[1] for col in columns}

    if "parent_id" not in column_names:
        await db.execute("ALTER TABLE deletion_records ADD COLUMN parent_id TEXT")

    await db.commit()


async def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    if db_path is None:
        db_path = get_db_path()

    async with aiosqlite.connect(db_path) as db:
        for table in DOCUMENT_TABLES:
            await db.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id TEXT PRIMARY KEY,
                    updated_at TEXT NOT NULL,
                    data TEXT NOT NULL
                )
            """)

        # Sessions are paged by date, so the date lives in its own column
        await db.execute("""
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                workout_id TEXT,
                date TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                data TEXT NOT NULL
            )
        """)

        # Deletion journal, one row per (entity_type, entity_id)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS deletion_records (
                entity_type TEXT NOT NULL,
                entity_id TEXT NOT NULL,
                id TEXT NOT NULL,
                deleted_at TEXT NOT NULL,
                synced_at TEXT,
                PRIMARY KEY (entity_type, entity_id)
            )
        """)

        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_sessions_date
            ON sessions(date)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_sessions_workout
            ON sessions(workout_id)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_deletion_records_synced
            ON deletion_records(synced_at)
        """)

        await db.commit()

        # Run migrations for existing databases
        await _run_migrations(db)
