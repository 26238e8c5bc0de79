"""
Go module manifest schema.

Immutable in-memory form of a go.mod file. Parsing produces a Manifest,
every transformation produces a new one.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from modrebase.core.json_canonical import canonical_json_dumps


def is_directory_path(path: str) -> bool:
    """Report whether a replacement target is a local filesystem path."""
    if path in (".", ".."):
        return True
    if path.startswith(("./", "../", "/", ".\\", "..\\")):
        return True
    # Windows drive letter
    return len(path) >= 3 and path[0].isalpha() and path[1] == ":" and path[2] in "/\\"


class Requirement(BaseModel):
    """A required module version."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1, description="Module path")
    version: str = Field(description="Required version")
    indirect: bool = Field(
        default=False, description="Whether the module is only needed transitively"
    )


class Exclusion(BaseModel):
    """A module version excluded from resolution."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1, description="Module path")
    version: str = Field(description="Excluded version")


class Replacement(BaseModel):
    """Redirects a module (or one version of it) to another source."""

    model_config = ConfigDict(frozen=True)

    old_path: str = Field(min_length=1, description="Module path being replaced")
    old_version: str | None = Field(
        default=None, description="Replaced version; None replaces all versions"
    )
    new_path: str = Field(min_length=1, description="Replacement module path or directory")
    new_version: str | None = Field(
        default=None, description="Replacement version; None for directory replacements"
    )

    @property
    def is_local(self) -> bool:
        """Whether the replacement points at a local directory."""
        return is_directory_path(self.new_path)


class Retraction(BaseModel):
    """A retracted version interval of the module itself."""

    model_config = ConfigDict(frozen=True)

    low: str = Field(description="Lowest retracted version (inclusive)")
    high: str = Field(description="Highest retracted version (inclusive)")
    rationale: str = Field(default="", description="Why the versions were retracted")

    @property
    def is_single(self) -> bool:
        return self.low == self.high


class GodebugSetting(BaseModel):
    """A godebug key=value default."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    value: str


class Manifest(BaseModel):
    """
    Complete go.mod manifest.

    Requirement paths are unique. Sequences are tuples so the model stays
    hashable and cannot be mutated after parsing.
    """

    model_config = ConfigDict(frozen=True)

    module_path: str = Field(min_length=1, description="Path of the module itself")
    go_version: str | None = Field(default=None, description="Value of the go directive")
    toolchain: str | None = Field(default=None, description="Value of the toolchain directive")

    godebug: tuple[GodebugSetting, ...] = Field(default=(), description="godebug defaults")
    requirements: tuple[Requirement, ...] = Field(
        default=(), description="Required modules in file order"
    )
    tools: tuple[str, ...] = Field(default=(), description="Tool package paths")
    excludes: tuple[Exclusion, ...] = Field(default=(), description="Excluded versions")
    replacements: tuple[Replacement, ...] = Field(
        default=(), description="Module replacements in file order"
    )
    retractions: tuple[Retraction, ...] = Field(
        default=(), description="Retracted version intervals"
    )

    @model_validator(mode="after")
    def _unique_requirements(self) -> Manifest:
        seen: set[str] = set()
        for req in self.requirements:
            if req.path in seen:
                raise ValueError(f"duplicate requirement for {req.path}")
            seen.add(req.path)
        return self

    def requirement(self, path: str) -> Requirement | None:
        """Return the requirement for a module path, if any."""
        for req in self.requirements:
            if req.path == path:
                return req
        return None

    @property
    def direct_requirements(self) -> tuple[Requirement, ...]:
        return tuple(r for r in self.requirements if not r.indirect)

    @property
    def indirect_requirements(self) -> tuple[Requirement, ...]:
        return tuple(r for r in self.requirements if r.indirect)

    def to_json(self, indent: bool = True) -> str:
        """Serialize to canonical JSON."""
        return canonical_json_dumps(self.model_dump(), indent=indent)
