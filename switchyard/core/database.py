"""Primary data store handle - SQLite via aiosqlite."""

from pathlib import Path
from typing import Optional
import aiosqlite

from switchyard.models.schema import CollectionSchema, FieldSchema, SchemaOverview


class Database:
    """Handle to the primary data store.

    Connections are opened per unit of work; callers close what they open.
    Extensions receive this handle through their context.
    """

    def __init__(self, db_path: str | Path):
        self._db_path = Path(db_path)

    @property
    def path(self) -> Path:
        return self._db_path

    async def connect(self) -> aiosqlite.Connection:
        """Open a new connection to the data store."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(self._db_path)
        conn.row_factory = aiosqlite.Row
        return conn

    async def get_schema(self) -> SchemaOverview:
        """Read the current schema snapshot."""
        conn = await self.connect()

        try:
            cursor = await conn.execute("""
                SELECT name FROM sqlite_master
                WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
                ORDER BY name
            """)
            tables = [row["name"] for row in await cursor.fetchall()]

            overview = SchemaOverview()
            for table in tables:
                cursor = await conn.execute(f'PRAGMA table_info("{table}")')
                columns = await cursor.fetchall()

                collection = CollectionSchema(collection=table)
                for column in columns:
                    collection.fields[column["name"]] = FieldSchema(
                        name=column["name"],
                        type=column["type"] or "",
                        nullable=not column["notnull"],
                        default_value=column["dflt_value"],
                    )
                    if column["pk"] == 1:
                        collection.primary = column["name"]

                overview.collections[table] = collection

            return overview
        finally:
            await conn.close()


_database: Optional[Database] = None


def get_database() -> Database:
    """Get the process-wide data store handle."""
    global _database
    if _database is None:
        from switchyard.config import get_config
        _database = Database(get_config().database.filename)
    return _database
