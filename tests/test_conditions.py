"""Tests for condition parsing and the Condition Evaluator."""

import pytest

from ontology_kernel.conditions.evaluator import ConditionEvaluator
from ontology_kernel.conditions.parser import (
    parse_conditions,
    scalar_to_text,
    serialize_conditions,
)
from ontology_kernel.errors import InvalidConditionFormat, ValidationError
from ontology_kernel.models.ontology import DataType
from ontology_kernel.models.transition import Condition
from ontology_kernel.store.fact_store import SQLiteFactStore


class TestParseConditions:
    def test_parse_list(self):
        conditions = parse_conditions(
            '[{"type": "mode", "name": "color", "value": "green"},'
            ' {"type": "attribute", "name": "height", "value": 10}]'
        )
        assert len(conditions) == 2
        assert conditions[0].type == "mode"
        assert conditions[1].value == 10

    @pytest.mark.parametrize("text", [None, "", "   ", "[]", "null"])
    def test_empty_means_no_conditions(self, text):
        assert parse_conditions(text) == []

    @pytest.mark.parametrize("text", [
        "not json",
        '{"type": "mode", "name": "color", "value": "green"}',
        '"just a string"',
        '[{"type": "mode", "value": "green"}]',
        '[{"type": "mode", "name": "color", "value": {"rgb": [0, 255, 0]}}]',
        '[{"type": "mode", "name": "color", "value": null}]',
        '[["mode", "color", "green"]]',
    ])
    def test_malformed_specification(self, text):
        with pytest.raises(InvalidConditionFormat):
            parse_conditions(text)

    def test_invalid_format_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            parse_conditions("{")

    def test_unknown_type_parses(self):
        conditions = parse_conditions('[{"type": "oracle", "name": "x", "value": 1}]')
        assert conditions[0].type == "oracle"

    def test_serialize_parses_back(self):
        conditions = [Condition(type="mode", name="color", value="green")]
        assert parse_conditions(serialize_conditions(conditions)) == conditions
        assert serialize_conditions([]) == ""


class TestScalarToText:
    @pytest.mark.parametrize("value,expected", [
        ("green", "green"),
        (True, "true"),
        (False, "false"),
        (10, "10"),
        (10.0, "10"),
        (2.5, "2.5"),
    ])
    def test_text_representation(self, value, expected):
        assert scalar_to_text(value) == expected


class TestConditionEvaluator:
    def setup_method(self):
        self.store = SQLiteFactStore(db_path=":memory:")
        self.tree = self.store.create_substance("Tree-001", "Oak", "A deciduous tree")
        self.color = self.store.create_attribute("color", DataType.STRING)
        self.height = self.store.create_attribute("height", DataType.NUMBER)
        self.evergreen = self.store.create_attribute("evergreen", DataType.BOOLEAN)
        self.evaluator = ConditionEvaluator(self.store)

    def _record(self, attribute, value: str):
        self.store.create_mode(self.tree.id, attribute.id, value)

    def test_recorded_fact_satisfies_attribute_and_mode(self):
        self._record(self.color, "green")
        for kind in ("attribute", "mode"):
            met, reason = self.evaluator.check(
                self.tree.id, Condition(type=kind, name="color", value="green")
            )
            assert met, reason
            assert reason == ""

    def test_attribute_missing(self):
        met, reason = self.evaluator.check(
            self.tree.id, Condition(type="attribute", name="color", value="green")
        )
        assert not met
        assert reason == "attribute 'color' not found for substance"

    def test_attribute_value_mismatch_names_actual_and_expected(self):
        self._record(self.color, "red")
        met, reason = self.evaluator.check(
            self.tree.id, Condition(type="attribute", name="color", value="green")
        )
        assert not met
        assert "'red'" in reason
        assert "'green'" in reason

    def test_mode_unmet(self):
        self._record(self.color, "red")
        met, reason = self.evaluator.check(
            self.tree.id, Condition(type="mode", name="color", value="green")
        )
        assert not met
        assert reason == "mode condition not met: color = green"

    def test_numbers_and_booleans_compare_as_text(self):
        self._record(self.height, "10")
        self._record(self.evergreen, "false")
        ready, unmet = self.evaluator.evaluate(self.tree.id, [
            Condition(type="attribute", name="height", value=10),
            Condition(type="mode", name="height", value=10.0),
            Condition(type="attribute", name="evergreen", value=False),
        ])
        assert ready, unmet

    def test_attribute_and_mode_diverge_on_duplicates(self):
        self._record(self.color, "green")
        self._record(self.color, "red")
        attribute_met, _ = self.evaluator.check(
            self.tree.id, Condition(type="attribute", name="color", value="green")
        )
        mode_met, _ = self.evaluator.check(
            self.tree.id, Condition(type="mode", name="color", value="green")
        )
        assert not attribute_met
        assert mode_met

    def test_external_always_passes(self):
        met, reason = self.evaluator.check(
            self.tree.id, Condition(type="external", name="weather", value="sunny")
        )
        assert met
        assert reason == ""

    def test_unknown_type_fails_closed(self):
        met, reason = self.evaluator.check(
            self.tree.id, Condition(type="oracle", name="x", value="y")
        )
        assert not met
        assert reason == "unknown condition type: oracle"

    def test_collects_every_failure(self):
        ready, unmet = self.evaluator.evaluate(self.tree.id, [
            Condition(type="mode", name="color", value="green"),
            Condition(type="external", name="weather", value="sunny"),
            Condition(type="attribute", name="height", value=10),
            Condition(type="oracle", name="x", value="y"),
        ])
        assert not ready
        assert len(unmet) == 3
        assert set(unmet) == {
            "mode condition not met: color = green",
            "attribute 'height' not found for substance",
            "unknown condition type: oracle",
        }

    def test_empty_specification_is_ready(self):
        assert self.evaluator.evaluate_text(self.tree.id, "") == (True, [])
        assert self.evaluator.evaluate(self.tree.id, []) == (True, [])

    def test_evaluation_is_idempotent(self):
        self._record(self.color, "red")
        text = (
            '[{"type": "mode", "name": "color", "value": "green"},'
            ' {"type": "attribute", "name": "color", "value": "red"}]'
        )
        first = self.evaluator.evaluate_text(self.tree.id, text)
        second = self.evaluator.evaluate_text(self.tree.id, text)
        assert first[0] == second[0]
        assert set(first[1]) == set(second[1])

    def test_evaluate_text_rejects_malformed(self):
        with pytest.raises(InvalidConditionFormat):
            self.evaluator.evaluate_text(self.tree.id, "[{]")
