"""Tests for spec and contract snapshot generation."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from contractgraph.snapshot import (
    generate_contract_snapshot,
    generate_spec_snapshot,
    load_specs,
    save_snapshot,
    specs_from_payload,
)


class TestGenerateSpecSnapshot:
    def test_declaration_to_snapshot(self):
        snapshot = generate_spec_snapshot({
            "name": "order.create",
            "version": "1.0.0",
            "type": "operation",
            "io": {
                "input": {
                    "email": {"type": "string"},
                    "note": {"type": "string", "optional": True},
                    "status": {"type": "enum", "enumValues": ["open", "closed"]},
                },
                "output": {},
            },
        })

        assert snapshot.ref_key == "order.create@1.0.0"
        assert snapshot.io is not None
        assert snapshot.io.input["email"].required is True
        assert snapshot.io.input["note"].required is False
        assert snapshot.io.input["status"].enum_values == ("open", "closed")

    def test_nested_shapes(self):
        snapshot = generate_spec_snapshot({
            "key": "cart.update",
            "version": "2.0.0",
            "io": {
                "input": {
                    "lines": {
                        "type": "array",
                        "items": {"type": "object", "fields": {"sku": {"type": "string"}}},
                    },
                },
            },
        })

        lines = snapshot.io.input["lines"]
        assert snapshot.name == "cart.update"
        assert snapshot.type == "operation"
        assert lines.items is not None
        assert lines.items.fields["sku"].type == "string"

    def test_without_io(self):
        snapshot = generate_spec_snapshot({"name": "ping", "version": "0.1.0", "type": "event"})
        assert snapshot.io is None
        assert "io" not in snapshot.to_dict()

    @pytest.mark.parametrize("declaration", [{"version": "1.0.0"}, {"name": "no.version"}])
    def test_incomplete_declaration(self, declaration):
        with pytest.raises(ValueError):
            generate_spec_snapshot(declaration)


class TestContractSnapshot:
    def test_hash_ignores_order_and_time(self):
        a = generate_spec_snapshot({"name": "a", "version": "1.0.0"})
        b = generate_spec_snapshot({"name": "b", "version": "1.0.0"})

        first = generate_contract_snapshot([a, b], generated_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        second = generate_contract_snapshot([b, a])

        assert first.hash == second.hash
        assert [s.name for s in second.specs] == ["a", "b"]
        assert first.version == 1

    def test_hash_changes_with_content(self):
        a = generate_spec_snapshot({"name": "a", "version": "1.0.0"})
        a2 = generate_spec_snapshot({"name": "a", "version": "1.0.1"})

        assert generate_contract_snapshot([a]).hash != generate_contract_snapshot([a2]).hash

    def test_save_and_reload(self, temp_dir: Path, fixtures_path: Path):
        specs = load_specs(fixtures_path / "baseline.json")
        output = temp_dir / "snapshot.json"

        save_snapshot(generate_contract_snapshot(specs), output)
        payload = json.loads(output.read_text(encoding="utf-8"))

        assert payload["version"] == 1
        assert "generatedAt" in payload
        reloaded = specs_from_payload(payload)
        assert {s.ref_key for s in reloaded} == {s.ref_key for s in specs}
        assert generate_contract_snapshot(reloaded).hash == payload["hash"]

    def test_payload_must_be_list(self):
        with pytest.raises(ValueError):
            specs_from_payload("nope")

    def test_entries_must_be_objects(self):
        with pytest.raises(ValueError):
            specs_from_payload(["order.create@1.0.0"])
