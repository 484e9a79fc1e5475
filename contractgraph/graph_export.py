"""Graphviz DOT export for contract graphs."""

from __future__ import annotations

from pathlib import Path
from typing import List

from .graph import ContractGraph


def to_dot(graph: ContractGraph, focus: str = "") -> str:
    """Render *graph* as DOT, one edge statement per dependency.

    Edges to keys missing from the graph are drawn dashed. With *focus*,
    only nodes whose key contains it, plus their direct neighbours, are kept.
    """
    selected = _focused_keys(graph, focus)

    lines: List[str] = ["digraph ContractGraph {", "  rankdir=LR;"]
    for key in selected:
        node = graph[key]
        label = f"{key}\\n{node.path}" if node.path else key
        lines.append(f'  "{_esc(key)}" [label="{_esc(label)}"];')

    for key in selected:
        for dep in dict.fromkeys(graph[key].dependencies):
            if dep in graph:
                lines.append(f'  "{_esc(key)}" -> "{_esc(dep)}";')
            else:
                lines.append(f'  "{_esc(key)}" -> "{_esc(dep)}" [style=dashed, color=red];')

    lines.append("}")
    return "\n".join(lines)


def export_dot(graph: ContractGraph, output_file: Path, focus: str = "") -> None:
    output_file.write_text(to_dot(graph, focus=focus), encoding="utf-8")


def _focused_keys(graph: ContractGraph, focus: str) -> List[str]:
    if not focus:
        return graph.keys()

    focus_keys = {key for key in graph if focus in key}
    if not focus_keys:
        return graph.keys()

    selected = set(focus_keys)
    for key in focus_keys:
        node = graph[key]
        selected.update(d for d in node.dependencies if d in graph)
        selected.update(node.dependents)
    return sorted(selected)


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
