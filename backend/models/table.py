"""Pydantic schemas for table and column metadata."""
from pydantic import BaseModel


class ColumnMetadata(BaseModel):
    name: str
    data_type: str
