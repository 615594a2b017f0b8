"""Extension data models."""

from pathlib import Path
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator


class HybridEntrypoint(BaseModel):
    """Client and server entrypoints of a hybrid extension."""
    app: str = Field(..., description="Browser-facing entrypoint")
    api: str = Field(..., description="Server-side entrypoint")


Entrypoint = Union[str, HybridEntrypoint]


class Extension(BaseModel):
    """Descriptor of one discovered extension.

    Two descriptors are the same extension iff their paths match.
    """
    name: str = Field(..., description="Extension name")
    type: str = Field(..., description="Extension type")
    path: Path = Field(..., description="Directory the extension lives in")
    entrypoint: Optional[Entrypoint] = Field(
        default=None,
        description="Entrypoint relative to path; absent for packs"
    )
    local: bool = Field(default=False, description="Found in the local extension directory")
    version: Optional[str] = None
    host: Optional[str] = Field(default=None, description="Supported host version range")
    children: list[str] = Field(default_factory=list, description="Names bundled by a pack")

    @property
    def is_hybrid(self) -> bool:
        return isinstance(self.entrypoint, HybridEntrypoint)

    @property
    def is_pack(self) -> bool:
        return self.entrypoint is None

    def resolve(self, part: Optional[str] = None) -> Path:
        """Absolute path of the entrypoint, or of one side of a hybrid."""
        if self.entrypoint is None:
            raise ValueError(f'Extension "{self.name}" has no entrypoint')
        if isinstance(self.entrypoint, HybridEntrypoint):
            relative = getattr(self.entrypoint, part or "api")
        else:
            relative = self.entrypoint
        return (self.path / relative).resolve()

    def same_as(self, other: "Extension") -> bool:
        return self.path.resolve() == other.path.resolve()


class ExtensionManifest(BaseModel):
    """The ``extension.json`` shipped inside an extension package."""
    type: str
    path: Optional[Entrypoint] = None
    host: Optional[str] = None

    @model_validator(mode="after")
    def check_path(self) -> "ExtensionManifest":
        from switchyard.extensions.constants import HYBRID_EXTENSION_TYPES, PACK_EXTENSION_TYPE

        if self.type == PACK_EXTENSION_TYPE:
            if self.path is not None:
                raise ValueError("Pack extensions can't declare a path")
        elif self.type in HYBRID_EXTENSION_TYPES:
            if not isinstance(self.path, HybridEntrypoint):
                raise ValueError(f'"{self.type}" extensions need an {{app, api}} path')
        elif not isinstance(self.path, str):
            raise ValueError(f'"{self.type}" extensions need a single path')
        return self


class ExtensionOptions(BaseModel):
    """Runtime options of the extension manager."""
    model_config = ConfigDict(frozen=True)

    schedule: bool = Field(default=True, description="Let scheduled hooks invoke their handlers")
    watch: bool = Field(default=False, description="Reload when extension files change")
