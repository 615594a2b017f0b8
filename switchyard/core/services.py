"""Data-access services exposed to extensions."""

import re
from typing import Any, Optional

from switchyard.core.database import Database, get_database
from switchyard.core.emitter import Emitter, get_emitter
from switchyard.core.errors import InvalidPayloadError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _identifier(value: str, kind: str) -> str:
    if not _IDENTIFIER.match(value):
        raise InvalidPayloadError(f'Invalid {kind} "{value}"')
    return value


class ItemsService:
    """Create and read items of one collection.

    Writes go through the host bus: ``items.create`` filters may rewrite or
    reject the payload before it is stored, and ``items.create`` actions are
    notified once it is.
    """

    def __init__(
        self,
        collection: str,
        database: Optional[Database] = None,
        emitter: Optional[Emitter] = None,
    ):
        self.collection = _identifier(collection, "collection")
        self.database = database or get_database()
        self.emitter = emitter or get_emitter()

    def _events(self, action: str) -> list[str]:
        return [f"items.{action}", f"{self.collection}.items.{action}"]

    async def create_one(self, payload: dict[str, Any]) -> Any:
        """Insert one item and return its primary key."""
        meta = {"collection": self.collection}
        payload = await self.emitter.emit_filter(
            self._events("create"), dict(payload), meta, {"database": self.database}
        )

        if not isinstance(payload, dict) or not payload:
            raise InvalidPayloadError("Payload has to be a non-empty object")

        columns = [_identifier(key, "field") for key in payload]
        placeholders = ", ".join("?" for _ in columns)
        column_list = ", ".join(f'"{column}"' for column in columns)

        conn = await self.database.connect()
        try:
            cursor = await conn.execute(
                f'INSERT INTO "{self.collection}" ({column_list}) VALUES ({placeholders})',
                tuple(payload.values()),
            )
            await conn.commit()
            key = cursor.lastrowid
        finally:
            await conn.close()

        await self.emitter.emit_action(
            self._events("create"),
            {**meta, "payload": payload, "key": key},
            {"database": self.database},
        )
        return key

    async def read_one(self, key: Any, primary: str = "id") -> Optional[dict[str, Any]]:
        """Read one item by primary key."""
        primary = _identifier(primary, "field")

        conn = await self.database.connect()
        try:
            cursor = await conn.execute(
                f'SELECT * FROM "{self.collection}" WHERE "{primary}" = ?',
                (key,),
            )
            row = await cursor.fetchone()
            return dict(row) if row is not None else None
        finally:
            await conn.close()
