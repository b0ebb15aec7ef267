"""Database catalog: schema metadata kept in memory and persisted as JSON."""

from __future__ import annotations

import copy
import json
import os
import re
import shutil
from abc import ABC, abstractmethod
from typing import Any

from .schema import (
    DEFAULT_MODEL_NAME,
    AutoEmbedding,
    DatabaseSchema,
    FieldSchema,
    FieldType,
    MetricType,
    TableSchema,
)

DEFAULT_DB_NAME = "default"
DB_CATALOG_FILE_NAME = "catalog"

_NAME_RULE = "should start with a letter or '_' and can contain only letters, digits, and underscores."
_VALID_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class CatalogError(Exception):
    """A catalog operation failed."""


class DatabaseNotFoundError(CatalogError):
    """The named database is not loaded."""


class TableNotFoundError(CatalogError):
    """The named table does not exist."""


class TableAlreadyExistsError(CatalogError):
    """A table with that name already exists."""


def is_valid_name(name: str) -> bool:
    """Whether a database, table or field name is acceptable."""
    return bool(_VALID_NAME.fullmatch(name))


def _field_type(value: int) -> FieldType:
    try:
        return FieldType(value)
    except ValueError:
        return FieldType.UNKNOWN


def _metric_type(value: int) -> MetricType:
    try:
        return MetricType(value)
    except ValueError:
        return MetricType.UNKNOWN


def field_schema_from_json(data: dict[str, Any]) -> FieldSchema:
    field_schema = FieldSchema(
        id=data["id"],
        name=data["name"],
        is_primary_key=data["is_primary_key"],
        field_type=_field_type(data["field_type"]),
    )
    if field_schema.field_type.is_vector():
        field_schema.vector_dimension = data["vector_dimension"]
        field_schema.metric_type = _metric_type(data["metric_type"])
    return field_schema


def table_schema_from_json(data: dict[str, Any]) -> TableSchema:
    return TableSchema(
        id=data["id"],
        name=data["name"],
        fields=[field_schema_from_json(f) for f in data.get("fields", [])],
        auto_embeddings=[
            AutoEmbedding(
                src_field_id=e["src_field_id"],
                tgt_field_id=e["tgt_field_id"],
                model_name=e.get("model_name", DEFAULT_MODEL_NAME),
            )
            for e in data.get("auto_embeddings", [])
        ],
    )


def field_schema_to_json(field_schema: FieldSchema) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": field_schema.id,
        "name": field_schema.name,
        "is_primary_key": field_schema.is_primary_key,
        "field_type": int(field_schema.field_type),
    }
    if FieldType(field_schema.field_type).is_vector():
        data["vector_dimension"] = field_schema.vector_dimension
        data["metric_type"] = int(field_schema.metric_type)
    return data


def table_schema_to_json(table_schema: TableSchema) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": table_schema.id,
        "name": table_schema.name,
        "fields": [field_schema_to_json(f) for f in table_schema.fields],
    }
    if table_schema.auto_embeddings:
        data["auto_embeddings"] = [
            {
                "src_field_id": e.src_field_id,
                "tgt_field_id": e.tgt_field_id,
                "model_name": e.model_name,
            }
            for e in table_schema.auto_embeddings
        ]
    return data


def database_schema_to_json(db_schema: DatabaseSchema) -> dict[str, Any]:
    return {
        "id": db_schema.id,
        "tables": [table_schema_to_json(t) for t in db_schema.tables],
    }


def new_table_id(db_schema: DatabaseSchema) -> int:
    """One more than the largest table id in use, or 0."""
    return max((t.id for t in db_schema.tables), default=-1) + 1


def validate_schema(table_schema: TableSchema) -> None:
    """Raise CatalogError if the table schema is not acceptable."""
    if not is_valid_name(table_schema.name):
        raise CatalogError("Table name " + _NAME_RULE)

    seen: set[str] = set()
    duplicated = False
    has_vector_field = False
    has_primary_key = False

    for fld in table_schema.fields:
        if not is_valid_name(fld.name):
            raise CatalogError(f"{fld.name}: Field name {_NAME_RULE}")
        if fld.name in seen:
            duplicated = True
            break
        seen.add(fld.name)

        if fld.field_type == FieldType.UNKNOWN:
            raise CatalogError(f"Type of {fld.name} is not valid.")

        if FieldType(fld.field_type).is_vector():
            has_vector_field = True
            if fld.vector_dimension <= 0:
                raise CatalogError("Vector dimension must be positive.")
            if fld.metric_type == MetricType.UNKNOWN:
                raise CatalogError(f"Metric type of {fld.name} is not valid.")

        if fld.is_primary_key:
            if has_primary_key:
                raise CatalogError("Cannot have more than 1 primary key fields.")
            has_primary_key = True

    if duplicated:
        raise CatalogError("Field names can not be duplicated.")
    if not has_vector_field:
        raise CatalogError("At lease one vector field is required.")


def _catalog_file(path: str) -> str:
    return os.path.join(path, DB_CATALOG_FILE_NAME)


def _atomic_write(file_path: str, content: str) -> None:
    tmp_path = file_path + ".tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, file_path)
    except OSError as exc:
        raise CatalogError(f"Failed to write file {file_path}: {exc}") from exc


def _save_db_to_file(db: DatabaseSchema, file_path: str) -> None:
    if db.name == DEFAULT_DB_NAME:
        return
    _atomic_write(file_path, json.dumps(database_schema_to_json(db)))


class Meta(ABC):
    """Interface of a schema catalog."""

    @abstractmethod
    def load_database(self, db_catalog_path: str, db_name: str) -> None: ...

    @abstractmethod
    def has_database(self, db_name: str) -> bool: ...

    @abstractmethod
    def get_database(self, db_name: str) -> DatabaseSchema: ...

    @abstractmethod
    def unload_database(self, db_name: str) -> None: ...

    @abstractmethod
    def drop_database(self, db_name: str) -> None: ...

    @abstractmethod
    def create_table(self, db_name: str, table_schema: TableSchema) -> None: ...

    @abstractmethod
    def has_table(self, db_name: str, table_name: str) -> bool: ...

    @abstractmethod
    def get_table(self, db_name: str, table_name: str) -> TableSchema: ...

    @abstractmethod
    def drop_table(self, db_name: str, table_name: str) -> None: ...


class BasicMeta(Meta):
    """Catalog keeping each database's schema in a JSON file under its directory."""

    def __init__(self) -> None:
        self._databases: dict[str, DatabaseSchema] = {
            DEFAULT_DB_NAME: DatabaseSchema(name=DEFAULT_DB_NAME)
        }
        self._loaded_paths: set[str] = set()

    def _database(self, db_name: str) -> DatabaseSchema:
        try:
            return self._databases[db_name]
        except KeyError:
            raise DatabaseNotFoundError(f"Database not found: {db_name}") from None

    def load_database(self, db_catalog_path: str, db_name: str) -> None:
        if db_catalog_path in self._loaded_paths:
            raise CatalogError(f"Database catalog file is already loaded: {db_catalog_path}")
        if db_name in self._databases:
            raise CatalogError(f"DB already exists: {db_name}")
        if not is_valid_name(db_name):
            raise CatalogError("DB name " + _NAME_RULE)

        db_schema = DatabaseSchema(name=db_name, path=db_catalog_path)
        if os.path.exists(db_catalog_path):
            try:
                with open(_catalog_file(db_catalog_path), encoding="utf-8") as fh:
                    data = json.load(fh)
                db_schema.id = data["id"]
                db_schema.tables = [table_schema_from_json(t) for t in data.get("tables", [])]
            except (OSError, ValueError, KeyError, TypeError) as exc:
                raise CatalogError(
                    f"Failed to parse database catalog file: {db_catalog_path}"
                ) from exc
        else:
            os.makedirs(db_catalog_path, exist_ok=True)
            _save_db_to_file(DatabaseSchema(), _catalog_file(db_catalog_path))

        self._databases[db_name] = db_schema
        self._loaded_paths.add(db_catalog_path)

    def has_database(self, db_name: str) -> bool:
        return db_name in self._databases

    def get_database(self, db_name: str) -> DatabaseSchema:
        return copy.deepcopy(self._database(db_name))

    def unload_database(self, db_name: str) -> None:
        db = self._database(db_name)
        self._loaded_paths.discard(db.path)
        del self._databases[db_name]

    def drop_database(self, db_name: str) -> None:
        db = self._database(db_name)
        if db.path:
            shutil.rmtree(db.path, ignore_errors=True)
        self._loaded_paths.discard(db.path)
        del self._databases[db_name]

    def create_table(self, db_name: str, table_schema: TableSchema) -> None:
        """Add a table; assigns its id on the given schema."""
        if self.has_table(db_name, table_schema.name):
            raise TableAlreadyExistsError(f"Table already exists: {table_schema.name}")
        validate_schema(table_schema)
        db = self._databases[db_name]
        table_schema.id = new_table_id(db)
        db.tables.append(copy.deepcopy(table_schema))
        _save_db_to_file(db, _catalog_file(db.path))

    def has_table(self, db_name: str, table_name: str) -> bool:
        db = self._database(db_name)
        return any(t.name == table_name for t in db.tables)

    def get_table(self, db_name: str, table_name: str) -> TableSchema:
        db = self._database(db_name)
        for table in db.tables:
            if table.name == table_name:
                return copy.deepcopy(table)
        raise TableNotFoundError(f"Table not found: {table_name}")

    def drop_table(self, db_name: str, table_name: str) -> None:
        db = self._database(db_name)
        for index, table in enumerate(db.tables):
            if table.name == table_name:
                del db.tables[index]
                _save_db_to_file(db, _catalog_file(db.path))
                return
        raise TableNotFoundError(f"Table not found: {table_name}")