"""Ontology records — substances, kinds, attributes and modes."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class DataType(str, Enum):
    """Declared data type of an attribute. Values are compared as text."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


class Kind(BaseModel):
    """Natural classification (e.g., oak, human)."""

    id: str
    name: str                               # Globally unique
    description: str = ""
    created_at: datetime


class Attribute(BaseModel):
    """A general property type substances may have (e.g., color, height)."""

    id: str
    name: str                               # Globally unique
    description: str = ""
    data_type: DataType
    created_at: datetime


class Substance(BaseModel):
    """An independently existing entity being modeled."""

    id: str                                 # Immutable once assigned
    name: str
    kind: str                               # Kind name, not kind ID
    essence: str
    created_at: datetime


class Mode(BaseModel):
    """
    A recorded fact: one substance currently has one attribute at one value.

    Older modes for the same (substance, attribute) pair are never superseded;
    the most recently created one is treated as current.
    """

    id: str
    value: str                              # Stored as text
    substance_id: str
    attribute_id: str
    attribute_name: str = ""                # Denormalized for condition lookups
    created_at: datetime
