"""
Condition Evaluator — matches a condition specification against recorded facts.

Behavioral Contract:
- Read-only: only consults the FactReader, never writes.
- Conjunction: the verdict is true iff every predicate passes.
- No short-circuit: every predicate is evaluated and every failure reason
  is returned, so callers can report all unmet conditions at once.
- Unknown predicate types fail closed.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from ontology_kernel.conditions.parser import parse_conditions, scalar_to_text
from ontology_kernel.models.transition import Condition, ConditionType
from ontology_kernel.store.fact_store import FactReader

logger = logging.getLogger(__name__)

CheckResult = Tuple[bool, str]


class ConditionEvaluator:
    """Evaluates predicates for one substance at a time against a FactReader."""

    def __init__(self, facts: FactReader):
        self._facts = facts
        self._checks: Dict[ConditionType, Callable[[str, Condition], CheckResult]] = {
            ConditionType.ATTRIBUTE: self._check_attribute,
            ConditionType.MODE: self._check_mode,
            ConditionType.EXTERNAL: self._check_external,
        }

    def evaluate(
        self, substance_id: str, conditions: List[Condition]
    ) -> Tuple[bool, List[str]]:
        """Evaluate all predicates. Returns (verdict, unmet reasons)."""
        unmet: List[str] = []
        for condition in conditions:
            met, reason = self.check(substance_id, condition)
            logger.debug(
                "Condition %s %s=%r for %s: %s",
                condition.type, condition.name, condition.value, substance_id,
                "met" if met else reason,
            )
            if not met:
                unmet.append(reason)
        return not unmet, unmet

    def evaluate_text(
        self, substance_id: str, text: Optional[str]
    ) -> Tuple[bool, List[str]]:
        """Parse then evaluate. InvalidConditionFormat propagates to the caller."""
        return self.evaluate(substance_id, parse_conditions(text))

    def check(self, substance_id: str, condition: Condition) -> CheckResult:
        """Evaluate a single predicate."""
        try:
            condition_type = ConditionType(condition.type)
        except ValueError:
            return False, f"unknown condition type: {condition.type}"
        return self._checks[condition_type](substance_id, condition)

    def _check_attribute(self, substance_id: str, condition: Condition) -> CheckResult:
        """The current mode for the attribute must carry the expected value."""
        mode = self._facts.find_mode(substance_id, condition.name)
        if mode is None:
            return False, f"attribute '{condition.name}' not found for substance"

        expected = scalar_to_text(condition.value)
        if mode.value != expected:
            return False, (
                f"attribute '{condition.name}' has value '{mode.value}', "
                f"expected '{expected}'"
            )
        return True, ""

    def _check_mode(self, substance_id: str, condition: Condition) -> CheckResult:
        """Some recorded mode must match both attribute name and value."""
        expected = scalar_to_text(condition.value)
        if not self._facts.mode_exists(substance_id, condition.name, expected):
            return False, f"mode condition not met: {condition.name} = {expected}"
        return True, ""

    def _check_external(self, substance_id: str, condition: Condition) -> CheckResult:
        # Truth lives in systems outside this one; no I/O is performed.
        return True, ""
