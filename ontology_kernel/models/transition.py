"""Potentialities, actualities and the condition specification attached to them."""

from datetime import datetime
from enum import Enum
from typing import List, Union

from pydantic import BaseModel, StrictBool, StrictFloat, StrictInt, StrictStr

# Tagged scalar: JSON booleans, numbers and strings keep their type here and
# are only rendered to text at comparison time.
ScalarValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]


class ConditionType(str, Enum):
    ATTRIBUTE = "attribute"   # Current mode for the attribute must equal value
    MODE = "mode"             # Some mode with this attribute and value must exist
    EXTERNAL = "external"     # Decided outside this system; always passes


class Condition(BaseModel):
    """
    A single predicate of a condition specification.

    `type` stays a plain string so that unrecognized tags survive parsing
    and are rejected at evaluation time.
    """

    type: StrictStr
    name: StrictStr
    value: ScalarValue


class PotentialityStatus(str, Enum):
    CREATED = "created"
    REALIZED = "realized"


class Potentiality(BaseModel):
    """A declared possible future state of one substance, gated by conditions."""

    id: str
    name: str
    description: str = ""
    conditions: str = ""                    # Serialized JSON list of predicates
    substance_id: str
    created_at: datetime


class Actuality(BaseModel):
    """Immutable record that a potentiality was realized for its substance."""

    id: str
    description: str
    actualized_at: datetime
    substance_id: str
    potentiality_id: str


class ReadinessReport(BaseModel):
    """Outcome of checking a potentiality's conditions against current facts."""

    potentiality_id: str
    can_actualize: bool
    unmet_conditions: List[str] = []
    status: PotentialityStatus = PotentialityStatus.CREATED
    checked_at: datetime


class SubstanceEvolution(BaseModel):
    """A substance's potentialities next to the actualities realized from them."""

    substance_id: str
    potentialities: List[Potentiality] = []
    actualities: List[Actuality] = []
    timestamp: datetime
