"""Causal relations — the four Aristotelian causes."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class CauseType(str, Enum):
    MATERIAL = "material"     # What something is made of
    FORMAL = "formal"         # Its essence or form
    EFFICIENT = "efficient"   # What brings it about
    FINAL = "final"           # Its purpose or end


class CausalRelation(BaseModel):
    """
    A directed, kind-tagged edge between two identifiers.

    Endpoints are opaque: either may name a substance or any external token.
    """

    id: str
    cause_type: CauseType
    from_entity: str
    to_entity: str
    created_at: datetime
