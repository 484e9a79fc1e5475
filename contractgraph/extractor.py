"""Spec descriptor contract consumed by the graph builder.

Reading spec sources and pulling out their declared key, type, and
dependency list happens outside this package. Implementations plug in by
subclassing :class:`SpecExtractor`; the bundled loader reads a declared
metadata sidecar (a JSON list of descriptors) instead of scanning source.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

# Suffixes that mark a file as a spec of a given type (``create-order.operation.ts``)
SPEC_SUFFIXES: List[str] = [
    ".operation",
    ".operations",
    ".event",
    ".events",
    ".presentation",
    ".workflow",
    ".form",
    ".data-view",
    ".capability",
    ".feature",
    ".experiment",
    ".integration",
    ".contracts",
    ".contract",
    ".spec",
]


@dataclass
class SpecDescriptor:
    path: str
    key: Optional[str] = None
    type: str = "operation"
    dependencies: List[str] = field(default_factory=list)

    @property
    def resolved_key(self) -> str:
        return self.key or key_from_path(self.path)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SpecDescriptor":
        if "path" not in payload:
            raise ValueError(f"Descriptor is missing 'path': {payload!r}")
        deps = payload.get("dependencies", payload.get("declaredDependencies")) or []
        return cls(
            path=str(payload["path"]),
            key=payload.get("key") or None,
            type=str(payload.get("type", "operation")),
            dependencies=[str(d) for d in deps],
        )


class SpecExtractor(ABC):
    """Turns raw spec source into a :class:`SpecDescriptor`."""

    @abstractmethod
    def extract(self, source: str, path: str) -> SpecDescriptor:
        ...


def key_from_path(path: str, suffixes: Optional[Iterable[str]] = None) -> str:
    """Derive a fallback spec key from a file path.

    Takes the file stem and strips one known spec-type suffix, so
    ``src/orders/create-order.operation.ts`` becomes ``create-order``.
    """
    stem = PurePosixPath(path.replace("\\", "/")).name
    if "." in stem:
        stem = stem.rsplit(".", 1)[0]
    for suffix in suffixes if suffixes is not None else SPEC_SUFFIXES:
        if stem.endswith(suffix) and len(stem) > len(suffix):
            return stem[: -len(suffix)]
    return stem


def load_descriptors(path: Path) -> List[SpecDescriptor]:
    """Load descriptors from a JSON sidecar file.

    Accepts either a bare list or an object with a ``specs`` list.
    """
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("specs", [])
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a list of spec descriptors")
    descriptors = [SpecDescriptor.from_dict(item) for item in payload]
    logger.debug("Loaded %d descriptors from %s", len(descriptors), path)
    return descriptors
