"""Semantic diff between two structural snapshots of the same spec.

Fields are compared position by position using dot paths
(``io.input.address.city``). Every atomic difference becomes one
:class:`SemanticDiffItem` flagged breaking or not:

- added optional field: non-breaking; added required field: breaking
- removed field: breaking
- type tag changed: breaking (no implicit widening)
- optional -> required, or nullable -> non-nullable: breaking; the reverse is not
- enum value removed: breaking; enum value added: non-breaking

Array element-shape changes collapse into a single item at the array path.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .models import FieldShape, IoShape, SemanticDiffItem, SpecSnapshot

logger = logging.getLogger(__name__)

IO_PREFIX = "io"


def compute_spec_diff(baseline: SpecSnapshot, head: SpecSnapshot) -> List[SemanticDiffItem]:
    """Diff two snapshots of one spec.

    A change of spec type is not field-diffed: the old type is reported
    removed (breaking) and the new type added (informational).
    """
    spec_key = head.name
    if baseline.type != head.type:
        return [
            SemanticDiffItem(
                spec_key=spec_key,
                path="type",
                kind="removed",
                breaking=True,
                description=f"Spec type '{baseline.type}' removed",
            ),
            SemanticDiffItem(
                spec_key=spec_key,
                path="type",
                kind="added",
                breaking=False,
                description=f"Spec type '{head.type}' added",
            ),
        ]
    items = compute_io_diff(baseline.io, head.io, spec_key=spec_key)
    if items:
        logger.debug("%s: %d diff item(s)", spec_key, len(items))
    return items


def compute_io_diff(
    baseline: Optional[IoShape],
    head: Optional[IoShape],
    spec_key: str = "",
) -> List[SemanticDiffItem]:
    base = baseline or IoShape()
    new = head or IoShape()
    items = compute_fields_diff(base.input, new.input, f"{IO_PREFIX}.input", spec_key)
    items.extend(compute_fields_diff(base.output, new.output, f"{IO_PREFIX}.output", spec_key))
    return items


def compute_fields_diff(
    baseline: Dict[str, FieldShape],
    head: Dict[str, FieldShape],
    path: str,
    spec_key: str = "",
) -> List[SemanticDiffItem]:
    items: List[SemanticDiffItem] = []
    for name in sorted(set(baseline) | set(head)):
        field_path = f"{path}.{name}" if path else name
        old = baseline.get(name)
        new = head.get(name)

        if new is None:
            items.append(SemanticDiffItem(
                spec_key=spec_key,
                path=field_path,
                kind="removed",
                breaking=True,
                description=f"Field '{field_path}' removed",
            ))
        elif old is None:
            label = "Required" if new.required else "Optional"
            items.append(SemanticDiffItem(
                spec_key=spec_key,
                path=field_path,
                kind="added",
                breaking=new.required,
                description=f"{label} field '{field_path}' added",
            ))
        else:
            items.extend(compute_field_diff(old, new, field_path, spec_key))
    return items


def compute_field_diff(
    baseline: FieldShape,
    head: FieldShape,
    path: str,
    spec_key: str = "",
) -> List[SemanticDiffItem]:
    items: List[SemanticDiffItem] = []

    if baseline.type != head.type:
        items.append(SemanticDiffItem(
            spec_key=spec_key,
            path=f"{path}.type",
            kind="changed",
            breaking=True,
            description=f"Field '{path}' type changed from '{baseline.type}' to '{head.type}'",
        ))

    if baseline.required != head.required:
        became = "required" if head.required else "optional"
        items.append(SemanticDiffItem(
            spec_key=spec_key,
            path=f"{path}.required",
            kind="changed",
            breaking=head.required,
            description=f"Field '{path}' became {became}",
        ))

    if baseline.nullable != head.nullable:
        became = "nullable" if head.nullable else "non-nullable"
        items.append(SemanticDiffItem(
            spec_key=spec_key,
            path=f"{path}.nullable",
            kind="changed",
            breaking=not head.nullable,
            description=f"Field '{path}' became {became}",
        ))

    # Nothing below a retyped field is comparable
    if baseline.type != head.type:
        return items

    items.extend(_enum_diff(baseline, head, path, spec_key))

    if baseline.fields or head.fields:
        items.extend(compute_fields_diff(baseline.fields, head.fields, path, spec_key))

    array_item = _array_diff(baseline, head, path, spec_key)
    if array_item is not None:
        items.append(array_item)
    return items


def _enum_diff(
    baseline: FieldShape,
    head: FieldShape,
    path: str,
    spec_key: str,
) -> List[SemanticDiffItem]:
    items: List[SemanticDiffItem] = []
    old_values = set(baseline.enum_values)
    new_values = set(head.enum_values)
    for value in baseline.enum_values:
        if value not in new_values:
            items.append(SemanticDiffItem(
                spec_key=spec_key,
                path=f"{path}.enum",
                kind="removed",
                breaking=True,
                description=f"Enum value '{value}' removed from '{path}'",
            ))
    for value in head.enum_values:
        if value not in old_values:
            items.append(SemanticDiffItem(
                spec_key=spec_key,
                path=f"{path}.enum",
                kind="added",
                breaking=False,
                description=f"Enum value '{value}' added to '{path}'",
            ))
    return items


def _array_diff(
    baseline: FieldShape,
    head: FieldShape,
    path: str,
    spec_key: str,
) -> Optional[SemanticDiffItem]:
    if baseline.items is None and head.items is None:
        return None

    if baseline.items is None or head.items is None:
        return SemanticDiffItem(
            spec_key=spec_key,
            path=path,
            kind="changed",
            breaking=True,
            description=f"Array '{path}' element shape changed",
        )

    nested = compute_field_diff(baseline.items, head.items, f"{path}[]", spec_key)
    if not nested:
        return None
    details = "; ".join(item.description for item in nested)
    return SemanticDiffItem(
        spec_key=spec_key,
        path=path,
        kind="changed",
        breaking=any(item.breaking for item in nested),
        description=f"Array '{path}' element shape changed: {details}",
    )
