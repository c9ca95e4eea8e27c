"""Transition engine configuration."""

from pydantic import BaseModel


class EngineConfig(BaseModel):
    """Configuration for the Transition Engine."""

    enforce_single_actualization: bool = False
