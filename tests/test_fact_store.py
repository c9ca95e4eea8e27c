"""Tests for the SQLite Fact Store."""

from datetime import datetime

import pytest

from ontology_kernel.errors import NotFoundError, StoreFailure, ValidationError
from ontology_kernel.models.causality import CausalRelation, CauseType
from ontology_kernel.models.ontology import DataType
from ontology_kernel.models.transition import Actuality, Potentiality
from ontology_kernel.store.fact_store import SQLiteFactStore


class TestFactStore:
    def setup_method(self):
        self.store = SQLiteFactStore(db_path=":memory:")
        self.tree = self.store.create_substance("Tree-001", "Oak", "A deciduous tree")
        self.color = self.store.create_attribute("color", DataType.STRING)

    def teardown_method(self):
        self.store.close()

    def test_substance_round_trip(self):
        fetched = self.store.get_substance(self.tree.id)
        assert fetched == self.tree
        assert self.tree.id.startswith("sub_")

    def test_get_missing_substance(self):
        assert self.store.get_substance("sub_missing") is None

    def test_update_substance_keeps_identity(self):
        updated = self.store.update_substance(self.tree.id, name="Tree-002")
        assert updated.id == self.tree.id
        assert updated.name == "Tree-002"
        assert updated.kind == "Oak"
        assert self.store.get_substance(self.tree.id).name == "Tree-002"

    def test_update_missing_substance(self):
        with pytest.raises(NotFoundError):
            self.store.update_substance("sub_missing", name="x")

    def test_delete_substance_cascades(self):
        self.store.create_mode(self.tree.id, self.color.id, "green")
        assert self.store.delete_substance(self.tree.id) is True
        assert self.store.count("modes") == 0
        assert self.store.delete_substance(self.tree.id) is False

    def test_kind_names_unique(self):
        self.store.create_kind("Oak", "A tree")
        with pytest.raises(ValidationError):
            self.store.create_kind("Oak")
        assert self.store.count("kinds") == 1

    def test_attribute_names_unique(self):
        with pytest.raises(ValidationError):
            self.store.create_attribute("color", DataType.STRING)
        assert self.store.get_attribute_by_name("color").id == self.color.id

    def test_create_mode_requires_substance(self):
        with pytest.raises(NotFoundError):
            self.store.create_mode("sub_missing", self.color.id, "green")
        assert self.store.count("modes") == 0

    def test_create_mode_requires_attribute(self):
        with pytest.raises(NotFoundError):
            self.store.create_mode(self.tree.id, "attr_missing", "green")
        assert self.store.count("modes") == 0

    def test_find_mode_returns_most_recent(self):
        self.store.create_mode(self.tree.id, self.color.id, "green")
        self.store.create_mode(self.tree.id, self.color.id, "red")
        mode = self.store.find_mode(self.tree.id, "color")
        assert mode.value == "red"
        assert mode.attribute_name == "color"

    def test_find_mode_absent(self):
        assert self.store.find_mode(self.tree.id, "color") is None

    def test_mode_exists_matches_any_assignment(self):
        self.store.create_mode(self.tree.id, self.color.id, "green")
        self.store.create_mode(self.tree.id, self.color.id, "red")
        assert self.store.mode_exists(self.tree.id, "color", "green")
        assert self.store.mode_exists(self.tree.id, "color", "red")
        assert not self.store.mode_exists(self.tree.id, "color", "blue")

    def test_modes_scoped_to_substance(self):
        other = self.store.create_substance("Tree-002", "Oak", "Another tree")
        self.store.create_mode(other.id, self.color.id, "green")
        assert self.store.find_mode(self.tree.id, "color") is None
        assert len(self.store.list_modes_for_substance(other.id)) == 1

    def test_potentiality_and_actuality(self):
        potentiality = Potentiality(
            id="pot_1",
            name="Bloom",
            conditions='[{"type": "external", "name": "spring", "value": true}]',
            substance_id=self.tree.id,
            created_at=datetime.utcnow(),
        )
        self.store.create_potentiality(potentiality)
        assert self.store.get_potentiality("pot_1") == potentiality

        actuality = Actuality(
            id="act_1",
            description="Bloomed",
            actualized_at=datetime.utcnow(),
            substance_id=self.tree.id,
            potentiality_id="pot_1",
        )
        self.store.create_actuality(actuality)
        assert self.store.list_actualities_for_potentiality("pot_1") == [actuality]
        assert self.store.list_actualities_for_substance(self.tree.id) == [actuality]

    def test_potentiality_for_missing_substance_is_store_failure(self):
        potentiality = Potentiality(
            id="pot_1", name="Bloom", substance_id="sub_missing", created_at=datetime.utcnow()
        )
        with pytest.raises(StoreFailure) as exc_info:
            self.store.create_potentiality(potentiality)
        assert exc_info.value.__cause__ is not None
        assert self.store.count("potentialities") == 0

    def test_causal_relations_by_either_endpoint(self):
        for i, (src, dst) in enumerate([("X", "Y"), ("Z", "X"), ("Y", "Z")]):
            self.store.create_causal_relation(CausalRelation(
                id=f"cause_{i}",
                cause_type=CauseType.MATERIAL,
                from_entity=src,
                to_entity=dst,
                created_at=datetime.utcnow(),
            ))
        relations = self.store.list_causal_relations_for_entity("X")
        assert [r.id for r in relations] == ["cause_0", "cause_1"]

    def test_transaction_rolls_back_on_error(self):
        with pytest.raises(RuntimeError):
            with self.store.transaction():
                self.store.create_substance("Doomed", "Oak", "Never committed")
                raise RuntimeError("boom")
        names = [s.name for s in self.store.list_substances()]
        assert "Doomed" not in names

    def test_count_rejects_unknown_table(self):
        with pytest.raises(ValueError):
            self.store.count("sqlite_master")


class TestFileBackedStore:
    def test_persists_across_connections(self, tmp_path):
        db_path = str(tmp_path / "ontology.db")
        store = SQLiteFactStore(db_path)
        substance = store.create_substance("Tree-001", "Oak", "A tree")
        store.close()

        reopened = SQLiteFactStore(db_path)
        assert reopened.get_substance(substance.id) == substance
        reopened.close()
