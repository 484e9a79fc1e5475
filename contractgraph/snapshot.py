"""Comparable structural snapshots of spec declarations.

A spec declaration is a plain mapping (usually loaded from JSON) with
``name``, ``version``, ``type`` and an optional ``io`` block. Snapshots are
immutable; one exists per spec per side of a comparison.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .models import ContractSnapshot, IoShape, SpecSnapshot

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT_VERSION = 1


def generate_spec_snapshot(declaration: Dict[str, Any]) -> SpecSnapshot:
    """Convert one spec declaration into a :class:`SpecSnapshot`."""
    if not isinstance(declaration, dict):
        raise ValueError(f"Spec declaration must be an object, got {declaration!r}")
    name = declaration.get("name") or declaration.get("key")
    if not name:
        raise ValueError(f"Spec declaration has no name: {declaration!r}")
    if "version" not in declaration:
        raise ValueError(f"Spec '{name}' has no version")
    io_payload = declaration.get("io")
    return SpecSnapshot(
        name=str(name),
        version=str(declaration["version"]),
        type=str(declaration.get("type", "operation")),
        io=IoShape.from_dict(io_payload) if io_payload is not None else None,
    )


def generate_contract_snapshot(
    specs: Iterable[SpecSnapshot],
    generated_at: Optional[datetime] = None,
) -> ContractSnapshot:
    """Capture a whole spec set, ordered by ``name@version``.

    The hash covers spec content only, so two captures of the same set at
    different times hash equal.
    """
    ordered = tuple(sorted(specs, key=lambda s: s.ref_key))
    timestamp = (generated_at or datetime.now(timezone.utc)).isoformat()
    snapshot = ContractSnapshot(
        generated_at=timestamp,
        specs=ordered,
        hash=hash_specs(ordered),
        version=SNAPSHOT_FORMAT_VERSION,
    )
    logger.debug("Generated snapshot of %d specs (%s)", len(ordered), snapshot.hash[:12])
    return snapshot


def hash_specs(specs: Iterable[SpecSnapshot]) -> str:
    canonical = json.dumps(
        [s.to_dict() for s in sorted(specs, key=lambda s: s.ref_key)],
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def specs_from_payload(payload: Any) -> List[SpecSnapshot]:
    """Read specs from a snapshot document or a bare list of declarations."""
    if isinstance(payload, dict):
        payload = payload.get("specs", [])
    if not isinstance(payload, list):
        raise ValueError("Expected a list of spec declarations")
    return [generate_spec_snapshot(item) for item in payload]


def load_specs(path: Path) -> List[SpecSnapshot]:
    return specs_from_payload(json.loads(path.read_text(encoding="utf-8")))


def save_snapshot(snapshot: ContractSnapshot, output_file: Path) -> None:
    output_file.write_text(json.dumps(snapshot.to_dict(), indent=2), encoding="utf-8")
