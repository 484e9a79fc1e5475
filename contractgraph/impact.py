"""Aggregate per-spec diffs into an impact verdict with version suggestions."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .diff_engine import compute_spec_diff
from .models import (
    ImpactResult,
    ImpactStatus,
    ImpactSummary,
    SemanticDiffItem,
    SpecSnapshot,
    VersionAnalysis,
)
from .versioning import bump_version, determine_bump_type

logger = logging.getLogger(__name__)


def classify_impact(
    baseline_specs: Iterable[SpecSnapshot],
    head_specs: Iterable[SpecSnapshot],
    diffs: Optional[Mapping[str, Sequence[SemanticDiffItem]]] = None,
) -> ImpactResult:
    """Classify the changes between two spec sets.

    Specs are matched on ``name@version``. *diffs* maps a matched ref key to
    its precomputed diff items; when omitted, each matched pair is diffed
    here. Head-only specs are reported as added and contribute no items;
    baseline-only specs each contribute one breaking removal.

    Raises:
        InvalidVersionError: if a changed spec carries an unparsable version.
    """
    baseline = _index(baseline_specs)
    head = _index(head_specs)

    matched = sorted(set(baseline) & set(head))
    added = sorted(set(head) - set(baseline))
    removed = sorted(set(baseline) - set(head))

    items: List[SemanticDiffItem] = []
    suggestions: List[VersionAnalysis] = []

    for ref_key in matched:
        if diffs is None:
            spec_items = compute_spec_diff(baseline[ref_key], head[ref_key])
        else:
            spec_items = list(diffs.get(ref_key, ()))
        if not spec_items:
            continue
        items.extend(spec_items)
        suggestions.append(_suggest_version(baseline[ref_key], spec_items))

    for ref_key in removed:
        spec = baseline[ref_key]
        items.append(SemanticDiffItem(
            spec_key=spec.name,
            path="spec",
            kind="removed",
            breaking=True,
            description=f"Spec '{ref_key}' removed",
        ))

    breaking = sum(1 for item in items if item.breaking)
    summary = ImpactSummary(breaking=breaking, non_breaking=len(items) - breaking)

    status: ImpactStatus
    if breaking:
        status = "breaking"
    elif items:
        status = "non-breaking"
    else:
        status = "clean"

    logger.info(
        "Impact %s: %d breaking, %d non-breaking across %d matched spec(s)",
        status, summary.breaking, summary.non_breaking, len(matched),
    )
    if added:
        logger.debug("New specs: %s", ", ".join(added))

    return ImpactResult(
        status=status,
        summary=summary,
        items=tuple(items),
        version_suggestions=tuple(suggestions),
        added_specs=tuple(added),
        removed_specs=tuple(removed),
    )


def analyze_versions(result: ImpactResult) -> Dict[str, int]:
    """Roll version suggestions up into totals for reporting."""
    analyses = result.version_suggestions
    return {
        "total_specs": len(analyses),
        "specs_needing_bump": sum(1 for a in analyses if a.suggested_version != a.current_version),
        "total_breaking": sum(1 for a in analyses if a.has_breaking),
        "total_non_breaking": sum(1 for a in analyses if not a.has_breaking),
    }


def should_fail(
    result: ImpactResult,
    fail_on_breaking: bool = True,
    fail_on_changes: bool = False,
) -> bool:
    """CI gate: whether *result* should fail the pipeline under the given policy."""
    if fail_on_changes and result.status != "clean":
        return True
    return fail_on_breaking and result.status == "breaking"


def _index(specs: Iterable[SpecSnapshot]) -> Dict[str, SpecSnapshot]:
    indexed: Dict[str, SpecSnapshot] = {}
    for spec in specs:
        if spec.ref_key in indexed:
            logger.warning("Spec %s listed twice; keeping the last entry", spec.ref_key)
        indexed[spec.ref_key] = spec
    return indexed


def _suggest_version(spec: SpecSnapshot, items: Sequence[SemanticDiffItem]) -> VersionAnalysis:
    has_breaking = any(item.breaking for item in items)
    has_non_breaking = any(not item.breaking for item in items)
    bump_type = determine_bump_type(has_breaking, has_non_breaking)
    return VersionAnalysis(
        spec_key=spec.name,
        current_version=spec.version,
        suggested_version=bump_version(spec.version, bump_type),
        bump_type=bump_type,
        has_breaking=has_breaking,
    )
