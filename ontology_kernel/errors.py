"""
Error taxonomy for the Ontology Kernel.

Callers branch on the exception class:
- NotFoundError: bad or stale identifier. Not retryable.
- ValidationError: malformed input. Fix the input; nothing was persisted.
- ConditionsUnmetError: a normal outcome of actualization. Try again later.
- AlreadyActualizedError: single actualization is enforced and already happened.
- StoreFailure: the persistence layer failed. The cause is chained.
"""

from typing import List, Optional


class OntologyError(Exception):
    """Base class for all kernel errors."""
    pass


class NotFoundError(OntologyError):
    """Raised when a referenced record does not exist."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class ValidationError(OntologyError):
    """Raised when input is rejected before anything is persisted."""
    pass


class InvalidConditionFormat(ValidationError):
    """Raised when a condition specification is not a list of predicates."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"invalid condition format: {detail}")


class InvalidCauseType(ValidationError):
    """Raised when a causal relation uses a kind outside the four causes."""

    def __init__(self, cause_type: str):
        self.cause_type = cause_type
        super().__init__(
            f"invalid cause type: {cause_type}. "
            f"Must be one of: material, formal, efficient, final"
        )


class ConditionsUnmetError(OntologyError):
    """Raised by actualization when the potentiality's conditions do not hold."""

    def __init__(self, potentiality_id: str, unmet: List[str]):
        self.potentiality_id = potentiality_id
        self.unmet = list(unmet)
        super().__init__(
            f"cannot actualize potentiality {potentiality_id}: "
            f"conditions not met: {'; '.join(self.unmet)}"
        )


class AlreadyActualizedError(OntologyError):
    """Raised when a potentiality may only be actualized once and already was."""

    def __init__(self, potentiality_id: str, actuality_id: Optional[str] = None):
        self.potentiality_id = potentiality_id
        self.actuality_id = actuality_id
        super().__init__(
            f"potentiality {potentiality_id} is already actualized"
            + (f" as {actuality_id}" if actuality_id else "")
        )


class StoreFailure(OntologyError):
    """Raised when the persistence layer reports an I/O or constraint error."""
    pass
