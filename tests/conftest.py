"""Pytest configuration and fixtures for contractgraph tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, Optional

import pytest

from contractgraph.graph import ContractGraph
from contractgraph.models import FieldShape, IoShape, SpecSnapshot


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Point config lookups at an empty temp dir so user settings never leak in."""
    home = tmp_path / "cg_home"
    monkeypatch.setattr("contractgraph.config.BASE_DIR", home)
    monkeypatch.setattr("contractgraph.config.CONFIG_FILE", home / "config.toml")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def fixtures_path() -> Path:
    """Directory holding sample descriptor, spec and capability files."""
    return Path(__file__).parent / "contract_fixtures"


def make_graph(edges: Dict[str, list]) -> ContractGraph:
    """Build a graph from ``{key: [dependencies]}``."""
    graph = ContractGraph()
    for key, deps in edges.items():
        graph.add_node(key, f"specs/{key}.operation.ts", deps)
    graph.build_reverse_edges()
    return graph


def make_field(name: str, type_: str = "string", required: bool = True, **extra: Any) -> FieldShape:
    return FieldShape(name=name, type=type_, required=required, **extra)


def make_spec(
    name: str,
    version: str = "1.0.0",
    type_: str = "operation",
    input_fields: Optional[Dict[str, FieldShape]] = None,
    output_fields: Optional[Dict[str, FieldShape]] = None,
) -> SpecSnapshot:
    return SpecSnapshot(
        name=name,
        version=version,
        type=type_,
        io=IoShape(input=input_fields or {}, output=output_fields or {}),
    )


@pytest.fixture
def order_create_baseline() -> SpecSnapshot:
    """``order.create@1.0.0`` with a required ``email`` input."""
    return make_spec(
        "order.create",
        input_fields={"email": make_field("email")},
        output_fields={"id": make_field("id")},
    )


@pytest.fixture
def order_create_head() -> SpecSnapshot:
    """Same spec with ``email`` removed and optional ``phone`` added."""
    return make_spec(
        "order.create",
        input_fields={"phone": make_field("phone", required=False)},
        output_fields={"id": make_field("id")},
    )
