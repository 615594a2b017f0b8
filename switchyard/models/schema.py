"""Data schema snapshot models."""

from pydantic import BaseModel, Field


class FieldSchema(BaseModel):
    """A single column of a collection."""
    name: str
    type: str = Field(default="", description="Declared column type")
    nullable: bool = True
    default_value: str | None = None


class CollectionSchema(BaseModel):
    """A table as seen by extensions."""
    collection: str
    primary: str | None = Field(default=None, description="Primary key column, if any")
    fields: dict[str, FieldSchema] = Field(default_factory=dict)


class SchemaOverview(BaseModel):
    """Snapshot of the primary data store's schema."""
    collections: dict[str, CollectionSchema] = Field(default_factory=dict)

    def has_collection(self, name: str) -> bool:
        return name in self.collections
