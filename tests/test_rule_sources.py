"""Tests for loading productions from rule files."""
import json

import pytest

from rulescope.app.models.schemas import AccumulatorCondition, BooleanCondition, Production
from rulescope.app.services.rule_sources import (
    RuleFileSource,
    RuleSource,
    get_productions,
    list_rule_sources,
    resolve_rule_source,
)


def test_load_sample_yaml(rules_dir):
    productions = RuleFileSource(rules_dir / "orders.yaml").load_rules()
    assert [p.name for p in productions] == [
        "orders/approve-large-order",
        "orders/flag-unpaid",
        "orders/total-alerts",
        "orders/shipping-ready",
    ]
    assert all(p.metadata["source"].endswith("orders.yaml") for p in productions)
    assert productions[0].props == {"salience": 10}
    assert isinstance(productions[1].lhs[1], BooleanCondition)
    assert isinstance(productions[2].lhs[0], AccumulatorCondition)
    assert productions[2].lhs[0].from_.type == "orders.Alert"


def test_load_json_list(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps([
        {"name": "r1", "lhs": [{"kind": "fact", "type": "A"}], "rhs": "insert(B())"},
    ]))
    productions = RuleFileSource(path).load_rules()
    assert len(productions) == 1
    assert productions[0].lhs[0].type == "A"
    assert productions[0].metadata["source"] == str(path)


def test_unsupported_suffix(tmp_path):
    path = tmp_path / "rules.txt"
    path.write_text("[]")
    with pytest.raises(ValueError):
        RuleFileSource(path).load_rules()


def test_rule_file_must_hold_a_list(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("rules: not-a-list\n")
    with pytest.raises(ValueError):
        RuleFileSource(path).load_rules()


def test_get_productions_mixes_sources_and_inline(rules_dir):
    inline = [{"name": "inline", "lhs": [{"kind": "fact", "type": "X"}]}]
    productions = get_productions([RuleFileSource(rules_dir / "orders.yaml"), inline])
    assert len(productions) == 5
    assert isinstance(productions[-1], Production)
    assert productions[-1].name == "inline"


def test_rule_file_source_is_a_rule_source(rules_dir):
    assert isinstance(RuleFileSource(rules_dir / "orders.yaml"), RuleSource)


def test_resolve_rule_source(rules_dir):
    source = resolve_rule_source("orders.yaml", rules_dir)
    assert source.path.name == "orders.yaml"

    with pytest.raises(FileNotFoundError):
        resolve_rule_source("missing.yaml", rules_dir)
    with pytest.raises(FileNotFoundError):
        resolve_rule_source("../../pyproject.toml", rules_dir)


def test_list_rule_sources(rules_dir, tmp_path):
    assert "orders.yaml" in list_rule_sources(rules_dir)
    assert list_rule_sources(tmp_path / "nowhere") == []
