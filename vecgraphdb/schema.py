"""Schema types describing databases, tables and fields."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

DEFAULT_VECTOR_DIMENSION = 0
DEFAULT_MODEL_NAME = "sentence-transformers/paraphrase-albert-small-v2"


class FieldType(IntEnum):
    """Storage type of a table field."""

    INT1 = 1
    INT2 = 2
    INT4 = 3
    INT8 = 4
    FLOAT = 10
    DOUBLE = 11
    STRING = 20
    BOOL = 30
    VECTOR_FLOAT = 40
    VECTOR_DOUBLE = 41
    UNKNOWN = 999

    def is_vector(self) -> bool:
        """Whether the type holds a vector of numbers."""
        return self in (FieldType.VECTOR_FLOAT, FieldType.VECTOR_DOUBLE)


class MetricType(IntEnum):
    """Distance metric used for a vector field."""

    EUCLIDEAN = 1
    COSINE = 2
    DOT_PRODUCT = 3
    UNKNOWN = 999


@dataclass
class FieldSchema:
    id: int = 0
    name: str = ""
    is_primary_key: bool = False
    field_type: FieldType = FieldType.INT4
    vector_dimension: int = DEFAULT_VECTOR_DIMENSION
    metric_type: MetricType = MetricType.EUCLIDEAN


@dataclass
class AutoEmbedding:
    src_field_id: int = 0
    tgt_field_id: int = 0
    model_name: str = DEFAULT_MODEL_NAME


@dataclass
class TableSchema:
    id: int = 0
    name: str = ""
    fields: list[FieldSchema] = field(default_factory=list)
    auto_embeddings: list[AutoEmbedding] = field(default_factory=list)


@dataclass
class DatabaseSchema:
    id: int = 0
    name: str = ""
    path: str = ""
    tables: list[TableSchema] = field(default_factory=list)