"""Capability registry and requirement resolution.

Registries are plain values owned by the caller; nothing here is global.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from .errors import DuplicateCapabilityError
from .models import (
    CapabilityRef,
    CapabilityRequirement,
    CapabilitySpec,
    CapabilitySurfaceRef,
)
from .versioning import compare_versions, format_ref_key, parse_version

logger = logging.getLogger(__name__)


class CapabilityRegistry:
    """Versioned capability specs keyed by ``key@version``."""

    def __init__(self, specs: Iterable[CapabilitySpec] = ()) -> None:
        self._items: Dict[str, CapabilitySpec] = {}
        # surface:key -> capability ref keys, rebuilt lazily after registration
        self._surface_index: Optional[Dict[str, Set[str]]] = None
        for spec in specs:
            self.register(spec)

    def register(self, spec: CapabilitySpec) -> "CapabilityRegistry":
        parse_version(spec.version)
        ref_key = format_ref_key(spec.key, spec.version)
        if ref_key in self._items:
            raise DuplicateCapabilityError(ref_key)
        self._items[ref_key] = spec
        self._surface_index = None
        return self

    def list(self) -> List[CapabilitySpec]:
        return list(self._items.values())

    def get(self, key: str, version: Optional[str] = None) -> Optional[CapabilitySpec]:
        """Exact lookup when *version* is given, else the highest registered version."""
        if version is not None:
            return self._items.get(format_ref_key(key, version))
        candidate: Optional[CapabilitySpec] = None
        for spec in self._items.values():
            if spec.key != key:
                continue
            if candidate is None or compare_versions(spec.version, candidate.version) > 0:
                candidate = spec
        return candidate

    def satisfies(
        self,
        requirement: CapabilityRequirement,
        provided: Optional[Iterable[CapabilityRef]] = None,
    ) -> bool:
        if requirement.optional:
            return True
        if provided and any(_matches(ref, requirement) for ref in provided):
            return True
        spec = self.get(requirement.key, requirement.version)
        if spec is None:
            return False
        if requirement.kind and spec.kind != requirement.kind:
            return False
        if requirement.version is not None and spec.version != requirement.version:
            return False
        return True

    def missing_requirements(
        self,
        requirements: Iterable[CapabilityRequirement],
        provided: Optional[Iterable[CapabilityRef]] = None,
    ) -> List[CapabilityRequirement]:
        refs = list(provided or ())
        return [r for r in requirements if not self.satisfies(r, refs)]

    def validate(self) -> Dict[str, List[CapabilityRequirement]]:
        """Unmet requirements of every registered capability, by ``key@version``."""
        problems: Dict[str, List[CapabilityRequirement]] = {}
        for ref_key, spec in sorted(self._items.items()):
            missing = self.missing_requirements(self.effective_requirements(spec.key, spec.version))
            if missing:
                problems[ref_key] = missing
        if problems:
            logger.debug("%d capability spec(s) with unmet requirements", len(problems))
        return problems

    # ------------------------------------------------------------------
    # Surface lookups
    # ------------------------------------------------------------------

    def surfaces_for(self, key: str, surface: str, version: Optional[str] = None) -> List[str]:
        """Keys of the given *surface* type provided by a capability or its ancestors."""
        keys = [s.key for s in self.effective_surfaces(key, version) if s.surface == surface]
        return list(dict.fromkeys(keys))

    def capabilities_for_surface(self, surface: str, surface_key: str) -> List[CapabilityRef]:
        """Capabilities that provide ``surface:surface_key``."""
        index = self._build_surface_index()
        refs = []
        for ref_key in sorted(index.get(f"{surface}:{surface_key}", ())):
            spec = self._items[ref_key]
            refs.append(CapabilityRef(key=spec.key, version=spec.version))
        return refs

    def _build_surface_index(self) -> Dict[str, Set[str]]:
        if self._surface_index is not None:
            return self._surface_index
        index: Dict[str, Set[str]] = {}
        for ref_key, spec in self._items.items():
            for surface in spec.provides:
                index.setdefault(f"{surface.surface}:{surface.key}", set()).add(ref_key)
        self._surface_index = index
        return index

    # ------------------------------------------------------------------
    # Inheritance
    # ------------------------------------------------------------------

    def ancestors(self, key: str, version: Optional[str] = None) -> List[CapabilitySpec]:
        """Parent chain from the immediate parent up to the root.

        Stops at the first parent that is unknown or already seen.
        """
        chain: List[CapabilitySpec] = []
        seen: Set[str] = set()
        current = self.get(key, version)
        if current is not None:
            seen.add(format_ref_key(current.key, current.version))

        while current is not None and current.extends is not None:
            parent = self.get(current.extends.key, current.extends.version)
            if parent is None:
                break
            parent_key = format_ref_key(parent.key, parent.version)
            if parent_key in seen:
                logger.warning("Circular capability inheritance at %s", parent_key)
                break
            seen.add(parent_key)
            chain.append(parent)
            current = parent
        return chain

    def effective_requirements(self, key: str, version: Optional[str] = None) -> List[CapabilityRequirement]:
        """Requirements including inherited ones; the child's entry wins per key."""
        spec = self.get(key, version)
        if spec is None:
            return []
        merged: Dict[str, CapabilityRequirement] = {}
        for ancestor in reversed(self.ancestors(key, version)):
            for requirement in ancestor.requires:
                merged[requirement.key] = requirement
        for requirement in spec.requires:
            merged[requirement.key] = requirement
        return list(merged.values())

    def effective_surfaces(self, key: str, version: Optional[str] = None) -> List[CapabilitySurfaceRef]:
        """Provided surfaces from the root ancestor down, then the capability's own."""
        spec = self.get(key, version)
        if spec is None:
            return []
        surfaces: List[CapabilitySurfaceRef] = []
        for ancestor in reversed(self.ancestors(key, version)):
            surfaces.extend(ancestor.provides)
        surfaces.extend(spec.provides)
        return surfaces


def _matches(ref: CapabilityRef, requirement: CapabilityRequirement) -> bool:
    if ref.key != requirement.key:
        return False
    return requirement.version is None or ref.version == requirement.version


# ===================================================================
# Loading
# ===================================================================

def capability_from_dict(payload: Dict[str, Any]) -> CapabilitySpec:
    if not isinstance(payload, dict):
        raise ValueError(f"Capability entry must be an object, got {payload!r}")
    extends = payload.get("extends")
    return CapabilitySpec(
        key=str(payload["key"]),
        version=str(payload["version"]),
        kind=payload.get("kind", "api"),
        description=payload.get("description", ""),
        provides=[
            CapabilitySurfaceRef(
                surface=item["surface"],
                key=item["key"],
                version=item.get("version"),
                description=item.get("description", ""),
            )
            for item in payload.get("provides", [])
        ],
        requires=[
            CapabilityRequirement(
                key=item["key"],
                version=item.get("version"),
                kind=item.get("kind"),
                optional=bool(item.get("optional", False)),
                reason=item.get("reason", ""),
            )
            for item in payload.get("requires", [])
        ],
        extends=CapabilityRef(key=extends["key"], version=extends.get("version")) if extends else None,
    )


def load_registry(path: Path) -> CapabilityRegistry:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("capabilities", [])
    if not isinstance(payload, list):
        raise ValueError("Expected a list of capability specs")
    return CapabilityRegistry(capability_from_dict(item) for item in payload)
