"""
Causal Graph — directed, kind-tagged edges between identifiers.

Orthogonal to the transition lifecycle: it annotates entities with why
they are as they are, and is queried by entity identifier.
"""

import logging
from datetime import datetime
from typing import Dict, List

from ontology_kernel.errors import InvalidCauseType
from ontology_kernel.models.causality import CausalRelation, CauseType
from ontology_kernel.store.fact_store import FactStore, new_id

logger = logging.getLogger(__name__)


class CausalGraph:
    """Adds causal relations and summarizes them per cause kind."""

    def __init__(self, store: FactStore):
        self.store = store

    def add_causal_relation(
        self, from_entity: str, to_entity: str, cause_type: str
    ) -> CausalRelation:
        """Persist an edge. Duplicates are allowed."""
        try:
            kind = CauseType(cause_type)
        except ValueError as exc:
            raise InvalidCauseType(str(cause_type)) from exc

        relation = CausalRelation(
            id=new_id("cause"),
            cause_type=kind,
            from_entity=from_entity,
            to_entity=to_entity,
            created_at=datetime.utcnow(),
        )
        self.store.create_causal_relation(relation)
        logger.info(
            "Causal relation %s added: %s -[%s]-> %s",
            relation.id, from_entity, kind.value, to_entity,
        )
        return relation

    def get_four_causes(self, entity_id: str) -> Dict[str, str]:
        """
        Map each cause kind to the "to" endpoint of the latest edge of that kind
        touching the entity. Earlier edges of the same kind are overwritten.
        """
        causes: Dict[str, str] = {}
        for relation in self.store.list_causal_relations_for_entity(entity_id):
            causes[relation.cause_type.value] = relation.to_entity
        return causes

    def get_causal_relations(self, entity_id: str) -> Dict[str, List[CausalRelation]]:
        """Every edge touching the entity, grouped by cause kind, oldest first."""
        grouped: Dict[str, List[CausalRelation]] = {}
        for relation in self.store.list_causal_relations_for_entity(entity_id):
            grouped.setdefault(relation.cause_type.value, []).append(relation)
        return grouped
