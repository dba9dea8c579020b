"""Pydantic schema for query guard settings."""
from pydantic import BaseModel, ConfigDict, Field


class GuardConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    select_only: bool = True
    forbidden_tables: list[str] = Field(default_factory=list)
