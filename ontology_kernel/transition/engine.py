"""
Transition Engine — owns the potentiality → actuality lifecycle.

States (per potentiality):
  CREATED → (conditions unmet: stays CREATED) → (conditions met + actualize) → REALIZED

Behavioral Contract:
- A potentiality's substance must exist, and its condition specification
  must parse, before anything is persisted.
- Creation performs no readiness check; conditions may reference facts that
  are not yet true.
- check_readiness is side-effect free.
- actualize is the only state-changing entry point. It re-verifies readiness
  and commits the actuality inside one store transaction, serialized per
  potentiality, so no fact can change between verification and commit.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ontology_kernel.conditions.evaluator import ConditionEvaluator
from ontology_kernel.conditions.parser import parse_conditions
from ontology_kernel.errors import (
    AlreadyActualizedError,
    ConditionsUnmetError,
    NotFoundError,
    ValidationError,
)
from ontology_kernel.models.config import EngineConfig
from ontology_kernel.models.transition import (
    Actuality,
    Potentiality,
    PotentialityStatus,
    ReadinessReport,
    SubstanceEvolution,
)
from ontology_kernel.store.fact_store import FactStore, new_id

logger = logging.getLogger(__name__)


class TransitionEngine:
    """
    Creates potentialities, checks their readiness and actualizes them.
    Written against the FactStore protocol, not a concrete store.
    """

    def __init__(self, store: FactStore, config: Optional[EngineConfig] = None):
        self.store = store
        self.config = config or EngineConfig()
        self._evaluator = ConditionEvaluator(store)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # --- Lifecycle ---

    def create_potentiality(
        self,
        substance_id: str,
        name: str,
        description: str = "",
        conditions: Optional[str] = "",
    ) -> Potentiality:
        """Declare a possible future state of a substance."""
        if not name or not name.strip():
            raise ValidationError("potentiality name is required")

        if self.store.get_substance(substance_id) is None:
            raise NotFoundError("substance", substance_id)

        # Raises InvalidConditionFormat before anything is written
        parse_conditions(conditions)

        potentiality = Potentiality(
            id=new_id("pot"),
            name=name,
            description=description or "",
            conditions=conditions or "",
            substance_id=substance_id,
            created_at=datetime.utcnow(),
        )
        self.store.create_potentiality(potentiality)
        logger.info(
            "Potentiality '%s' (%s) created for substance %s",
            potentiality.name, potentiality.id, substance_id,
        )
        return potentiality

    def check_readiness(self, potentiality_id: str) -> Tuple[bool, List[str]]:
        """Evaluate a potentiality's conditions. Returns (ready, unmet reasons)."""
        potentiality = self.get_potentiality(potentiality_id)
        return self._evaluate(potentiality)

    def readiness_report(self, potentiality_id: str) -> ReadinessReport:
        """check_readiness plus the potentiality's current lifecycle status."""
        with self.store.transaction():
            potentiality = self.get_potentiality(potentiality_id)
            ready, unmet = self._evaluate(potentiality)
            status = self.get_status(potentiality_id)
        return ReadinessReport(
            potentiality_id=potentiality_id,
            can_actualize=ready,
            unmet_conditions=unmet,
            status=status,
            checked_at=datetime.utcnow(),
        )

    def actualize(self, potentiality_id: str, description: str) -> Actuality:
        """
        Convert a potentiality into an actuality.

        Raises NotFoundError, ConditionsUnmetError (nothing written) or,
        when single actualization is enforced, AlreadyActualizedError.
        """
        if not description or not description.strip():
            raise ValidationError("actuality description is required")

        with self._lock_for(potentiality_id), self.store.transaction():
            potentiality = self.get_potentiality(potentiality_id)

            if self.config.enforce_single_actualization:
                existing = self.store.list_actualities_for_potentiality(potentiality_id)
                if existing:
                    raise AlreadyActualizedError(potentiality_id, existing[0].id)

            ready, unmet = self._evaluate(potentiality)
            if not ready:
                logger.warning(
                    "Actualization of '%s' (%s) refused: %d unmet condition(s)",
                    potentiality.name, potentiality_id, len(unmet),
                )
                raise ConditionsUnmetError(potentiality_id, unmet)

            actuality = Actuality(
                id=new_id("act"),
                description=description,
                actualized_at=datetime.utcnow(),
                substance_id=potentiality.substance_id,
                potentiality_id=potentiality_id,
            )
            self.store.create_actuality(actuality)

        logger.info("Potentiality '%s' actualized as '%s'", potentiality.name, description)
        return actuality

    # --- Queries ---

    def get_potentiality(self, potentiality_id: str) -> Potentiality:
        potentiality = self.store.get_potentiality(potentiality_id)
        if potentiality is None:
            raise NotFoundError("potentiality", potentiality_id)
        return potentiality

    def get_status(self, potentiality_id: str) -> PotentialityStatus:
        """REALIZED once any actuality references the potentiality."""
        if self.store.list_actualities_for_potentiality(potentiality_id):
            return PotentialityStatus.REALIZED
        return PotentialityStatus.CREATED

    def get_potentialities_for_substance(self, substance_id: str) -> List[Potentiality]:
        return self.store.list_potentialities_for_substance(substance_id)

    def get_actualities_for_substance(self, substance_id: str) -> List[Actuality]:
        return self.store.list_actualities_for_substance(substance_id)

    def get_substance_evolution(self, substance_id: str) -> SubstanceEvolution:
        """A substance's potentialities alongside what has been realized from them."""
        if self.store.get_substance(substance_id) is None:
            raise NotFoundError("substance", substance_id)
        return SubstanceEvolution(
            substance_id=substance_id,
            potentialities=self.get_potentialities_for_substance(substance_id),
            actualities=self.get_actualities_for_substance(substance_id),
            timestamp=datetime.utcnow(),
        )

    # --- Internals ---

    def _evaluate(self, potentiality: Potentiality) -> Tuple[bool, List[str]]:
        return self._evaluator.evaluate_text(
            potentiality.substance_id, potentiality.conditions
        )

    def _lock_for(self, potentiality_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(potentiality_id)
            if lock is None:
                lock = self._locks[potentiality_id] = threading.Lock()
            return lock
