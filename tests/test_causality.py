"""Tests for the Causal Graph."""

import pytest

from ontology_kernel.causality.graph import CausalGraph
from ontology_kernel.errors import InvalidCauseType, ValidationError
from ontology_kernel.models.causality import CauseType
from ontology_kernel.store.fact_store import SQLiteFactStore


class TestCausalGraph:
    def setup_method(self):
        self.store = SQLiteFactStore(db_path=":memory:")
        self.graph = CausalGraph(self.store)

    def test_add_relation(self):
        relation = self.graph.add_causal_relation("acorn", "oak", "material")
        assert relation.cause_type == CauseType.MATERIAL
        assert relation.id.startswith("cause_")
        assert self.store.count("causal_relations") == 1

    @pytest.mark.parametrize("cause_type", ["material", "formal", "efficient", "final"])
    def test_all_four_causes_accepted(self, cause_type):
        relation = self.graph.add_causal_relation("X", "Y", cause_type)
        assert relation.cause_type.value == cause_type

    @pytest.mark.parametrize("cause_type", ["invalid-kind", "", "Material", "accidental"])
    def test_invalid_cause_rejected(self, cause_type):
        with pytest.raises(InvalidCauseType):
            self.graph.add_causal_relation("X", "Y", cause_type)
        assert self.store.count("causal_relations") == 0

    def test_invalid_cause_leaves_summary_unchanged(self):
        self.graph.add_causal_relation("X", "Y", "formal")
        before = self.graph.get_four_causes("X")
        with pytest.raises(ValidationError):
            self.graph.add_causal_relation("X", "Y", "invalid-kind")
        assert self.graph.get_four_causes("X") == before == {"formal": "Y"}

    def test_last_write_wins_per_kind(self):
        self.graph.add_causal_relation("X", "Y", "material")
        self.graph.add_causal_relation("X", "Z", "material")
        assert self.graph.get_four_causes("X") == {"material": "Z"}

    def test_summary_includes_incoming_edges(self):
        self.graph.add_causal_relation("gardener", "X", "efficient")
        self.graph.add_causal_relation("X", "shade", "final")
        assert self.graph.get_four_causes("X") == {"efficient": "X", "final": "shade"}

    def test_duplicates_allowed(self):
        self.graph.add_causal_relation("X", "Y", "material")
        self.graph.add_causal_relation("X", "Y", "material")
        assert self.store.count("causal_relations") == 2

    def test_unknown_entity_has_empty_summary(self):
        assert self.graph.get_four_causes("nobody") == {}

    def test_full_edge_list_keeps_history(self):
        self.graph.add_causal_relation("X", "Y", "material")
        self.graph.add_causal_relation("X", "Z", "material")
        self.graph.add_causal_relation("X", "form", "formal")
        grouped = self.graph.get_causal_relations("X")
        assert [r.to_entity for r in grouped["material"]] == ["Y", "Z"]
        assert len(grouped["formal"]) == 1
