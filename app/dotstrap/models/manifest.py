"""Manifest models for declared packages.

This module defines the Pydantic models representing the JSON package
manifest. Each entry is either a bare identifier string or an object:

    ["Git.Git", {"id": "Neovim.Neovim", "scope": "machine"},
     {"id": "wez.wezterm", "version": "20240203", "pinned": true}]
"""

from collections.abc import Iterator
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator

from dotstrap.models.package import PackageScope

# Type alias for the scope field in the manifest
PackageScopeType = Literal["user", "machine"]


class PackageEntry(BaseModel):
    """A single declared package.

    Attributes:
        id: Identifier understood by the package manager.
        scope: Installation privilege level ("user" or "machine").
        expected_version: Version the package is pinned to (JSON key ``version``).
        pinned: Whether the installed version must equal ``expected_version``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: Annotated[str, Field(description="Package manager identifier")]
    scope: Annotated[PackageScopeType, Field(description="Installation scope")] = "user"
    expected_version: Annotated[
        str | None,
        Field(alias="version", description="Pinned version"),
    ] = None
    pinned: Annotated[bool, Field(description="Require the exact expected version")] = False

    @model_validator(mode="before")
    @classmethod
    def normalize_bare_id(cls, data: Any) -> Any:
        """Accept a bare identifier string as shorthand for ``{"id": ...}``."""
        if isinstance(data, str):
            return {"id": data}
        return data

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Strip the identifier and reject empty ones."""
        value = v.strip()
        if not value:
            msg = "Package id cannot be empty"
            raise ValueError(msg)
        return value

    @property
    def package_scope(self) -> PackageScope:
        """Scope as a PackageScope enum value."""
        return PackageScope(self.scope)

    @property
    def is_pinned(self) -> bool:
        """Check if the entry pins a concrete version.

        ``pinned`` without a version has nothing to compare against and is
        treated as unpinned.
        """
        return self.pinned and bool(self.expected_version)


class Manifest(RootModel[list[PackageEntry]]):
    """Ordered list of declared packages.

    Entry order is the installation order. Identifiers are unique
    (case-insensitive).
    """

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "Manifest":
        """Reject manifests declaring the same id twice."""
        seen: set[str] = set()
        duplicates: list[str] = []
        for entry in self.root:
            key = entry.id.lower()
            if key in seen:
                duplicates.append(entry.id)
            seen.add(key)
        if duplicates:
            msg = f"Duplicate package ids in manifest: {', '.join(duplicates)}"
            raise ValueError(msg)
        return self

    def __iter__(self) -> Iterator[PackageEntry]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    @property
    def ids(self) -> list[str]:
        """Package ids in manifest order."""
        return [entry.id for entry in self.root]
