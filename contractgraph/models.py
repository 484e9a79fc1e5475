"""Core data models shared by the graph, diff, and impact layers.

Result types expose ``to_dict()`` so reports can be serialized without
re-running analysis. Wire keys are camelCase to match what external
formatters expect.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

DiffKind = Literal["added", "removed", "changed"]
ImpactStatus = Literal["breaking", "non-breaking", "clean"]
BumpType = Literal["major", "minor", "patch"]
CapabilityKind = Literal["api", "event", "data", "ui", "integration"]
CapabilitySurface = Literal["operation", "event", "workflow", "presentation", "resource"]


# ===================================================================
# Graph
# ===================================================================

@dataclass
class ContractNode:
    key: str
    path: str
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MissingDependency:
    """A contract that declares dependencies on keys absent from the graph."""
    contract: str
    missing: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"contract": self.contract, "missing": list(self.missing)}


# ===================================================================
# Snapshots
# ===================================================================

@dataclass(frozen=True)
class FieldShape:
    """Structural description of one schema field.

    ``fields`` holds the nested shape of an ``object`` field and ``items``
    the element shape of an ``array`` field.
    """
    name: str
    type: str
    required: bool = True
    nullable: bool = False
    enum_values: Tuple[str, ...] = ()
    fields: Dict[str, "FieldShape"] = field(default_factory=dict)
    items: Optional["FieldShape"] = None

    @classmethod
    def from_dict(cls, name: str, payload: Dict[str, Any]) -> "FieldShape":
        if "required" in payload:
            required = bool(payload["required"])
        else:
            required = not payload.get("optional", False)
        nested = payload.get("fields") or {}
        items = payload.get("items")
        return cls(
            name=name,
            type=str(payload.get("type", "unknown")),
            required=required,
            nullable=bool(payload.get("nullable", False)),
            enum_values=tuple(payload.get("enumValues") or payload.get("enum") or ()),
            fields={k: cls.from_dict(k, v) for k, v in nested.items()},
            items=cls.from_dict(f"{name}[]", items) if items else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type,
            "required": self.required,
            "nullable": self.nullable,
        }
        if self.enum_values:
            payload["enumValues"] = list(self.enum_values)
        if self.fields:
            payload["fields"] = {k: v.to_dict() for k, v in sorted(self.fields.items())}
        if self.items is not None:
            payload["items"] = self.items.to_dict()
        return payload


@dataclass(frozen=True)
class IoShape:
    input: Dict[str, FieldShape] = field(default_factory=dict)
    output: Dict[str, FieldShape] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "IoShape":
        return cls(
            input={k: FieldShape.from_dict(k, v) for k, v in (payload.get("input") or {}).items()},
            output={k: FieldShape.from_dict(k, v) for k, v in (payload.get("output") or {}).items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input": {k: v.to_dict() for k, v in sorted(self.input.items())},
            "output": {k: v.to_dict() for k, v in sorted(self.output.items())},
        }


@dataclass(frozen=True)
class SpecSnapshot:
    name: str
    version: str
    type: str
    io: Optional[IoShape] = None

    @property
    def ref_key(self) -> str:
        return f"{self.name}@{self.version}"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "type": self.type,
        }
        if self.io is not None:
            payload["io"] = self.io.to_dict()
        return payload


@dataclass(frozen=True)
class ContractSnapshot:
    """Point-in-time capture of a whole spec set."""
    generated_at: str
    specs: Tuple[SpecSnapshot, ...]
    hash: str
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generatedAt": self.generated_at,
            "specs": [s.to_dict() for s in self.specs],
            "hash": self.hash,
        }


# ===================================================================
# Diff / impact results
# ===================================================================

@dataclass(frozen=True)
class SemanticDiffItem:
    spec_key: str
    path: str
    kind: DiffKind
    breaking: bool
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "specKey": self.spec_key,
            "path": self.path,
            "kind": self.kind,
            "breaking": self.breaking,
            "description": self.description,
        }


@dataclass(frozen=True)
class VersionAnalysis:
    spec_key: str
    current_version: str
    suggested_version: str
    bump_type: BumpType
    has_breaking: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "specKey": self.spec_key,
            "currentVersion": self.current_version,
            "suggestedVersion": self.suggested_version,
            "bumpType": self.bump_type,
            "hasBreaking": self.has_breaking,
        }


@dataclass(frozen=True)
class ImpactSummary:
    breaking: int = 0
    non_breaking: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"breaking": self.breaking, "nonBreaking": self.non_breaking}


@dataclass(frozen=True)
class ImpactResult:
    status: ImpactStatus
    summary: ImpactSummary
    items: Tuple[SemanticDiffItem, ...] = ()
    version_suggestions: Tuple[VersionAnalysis, ...] = ()
    added_specs: Tuple[str, ...] = ()
    removed_specs: Tuple[str, ...] = ()

    @property
    def has_breaking(self) -> bool:
        return self.status == "breaking"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "summary": self.summary.to_dict(),
            "items": [i.to_dict() for i in self.items],
            "versionSuggestions": [v.to_dict() for v in self.version_suggestions],
            "addedSpecs": list(self.added_specs),
            "removedSpecs": list(self.removed_specs),
        }


# ===================================================================
# Capabilities
# ===================================================================

@dataclass(frozen=True)
class CapabilityRef:
    key: str
    version: Optional[str] = None


@dataclass(frozen=True)
class CapabilitySurfaceRef:
    surface: CapabilitySurface
    key: str
    version: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class CapabilityRequirement:
    key: str
    version: Optional[str] = None
    kind: Optional[CapabilityKind] = None
    optional: bool = False
    reason: str = ""


@dataclass
class CapabilitySpec:
    key: str
    version: str
    kind: CapabilityKind
    provides: List[CapabilitySurfaceRef] = field(default_factory=list)
    requires: List[CapabilityRequirement] = field(default_factory=list)
    extends: Optional[CapabilityRef] = None
    description: str = ""
