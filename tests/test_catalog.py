import json
import os

import pytest

from vecgraphdb.catalog import (
    BasicMeta,
    CatalogError,
    DatabaseNotFoundError,
    TableAlreadyExistsError,
    TableNotFoundError,
    database_schema_to_json,
    field_schema_from_json,
    field_schema_to_json,
    is_valid_name,
    new_table_id,
    table_schema_from_json,
    table_schema_to_json,
    validate_schema,
)
from vecgraphdb.schema import (
    AutoEmbedding,
    DatabaseSchema,
    FieldSchema,
    FieldType,
    MetricType,
    TableSchema,
)


def make_table(name="test_table"):
    return TableSchema(
        name=name,
        fields=[
            FieldSchema(name="id", is_primary_key=True, field_type=FieldType.INT4),
            FieldSchema(name="doc", field_type=FieldType.STRING),
            FieldSchema(name="vec1", field_type=FieldType.VECTOR_FLOAT, vector_dimension=768),
        ],
    )


@pytest.mark.parametrize("name,ok", [("abc", True), ("_x1", True), ("1abc", False), ("a-b", False), ("", False)])
def test_is_valid_name(name, ok):
    assert is_valid_name(name) is ok


def test_field_json_round_trip():
    f = FieldSchema(id=2, name="v", field_type=FieldType.VECTOR_DOUBLE, vector_dimension=8, metric_type=MetricType.COSINE)
    assert field_schema_from_json(field_schema_to_json(f)) == f


def test_scalar_field_json_omits_vector_keys():
    data = field_schema_to_json(FieldSchema(name="n", field_type=FieldType.STRING))
    assert "vector_dimension" not in data
    assert "metric_type" not in data


def test_table_json_round_trip_with_embeddings():
    t = make_table()
    t.auto_embeddings.append(AutoEmbedding(src_field_id=1, tgt_field_id=2, model_name="m"))
    assert table_schema_from_json(table_schema_to_json(t)) == t


def test_table_json_omits_empty_embeddings():
    assert "auto_embeddings" not in table_schema_to_json(make_table())


def test_database_json_has_no_name():
    data = database_schema_to_json(DatabaseSchema(id=3, name="db", tables=[make_table()]))
    assert set(data) == {"id", "tables"}
    assert len(data["tables"]) == 1


def test_new_table_id():
    assert new_table_id(DatabaseSchema()) == 0
    db = DatabaseSchema(tables=[TableSchema(id=4), TableSchema(id=1)])
    assert new_table_id(db) == 5


def test_validate_accepts_good_schema():
    validate_schema(make_table())
    assert make_table().fields[2].field_type.is_vector()


@pytest.mark.parametrize(
    "mutate,message",
    [
        (lambda t: setattr(t, "name", "9bad"), "Table name"),
        (lambda t: t.fields.append(FieldSchema(name="doc", field_type=FieldType.STRING)), "duplicated"),
        (lambda t: setattr(t.fields[1], "field_type", FieldType.UNKNOWN), "Type of doc"),
        (lambda t: setattr(t.fields[2], "vector_dimension", 0), "Vector dimension"),
        (lambda t: setattr(t.fields[2], "metric_type", MetricType.UNKNOWN), "Metric type"),
        (lambda t: setattr(t.fields[1], "is_primary_key", True), "primary key"),
        (lambda t: t.fields.pop(), "vector field"),
    ],
)
def test_validate_rejects(mutate, message):
    table = make_table()
    mutate(table)
    with pytest.raises(CatalogError, match=message):
        validate_schema(table)


def test_default_database_present():
    meta = BasicMeta()
    assert meta.has_database("default")
    assert not meta.has_database("other")


def test_load_new_database_creates_catalog(tmp_path):
    path = str(tmp_path / "db")
    meta = BasicMeta()
    meta.load_database(path, "test_db")
    with open(os.path.join(path, "catalog")) as fh:
        assert json.load(fh) == {"id": 0, "tables": []}
    assert meta.get_database("test_db").path == path


def test_load_rejects_duplicates_and_bad_names(tmp_path):
    meta = BasicMeta()
    path = str(tmp_path / "db")
    meta.load_database(path, "test_db")
    with pytest.raises(CatalogError, match="already loaded"):
        meta.load_database(path, "other")
    with pytest.raises(CatalogError, match="DB already exists"):
        meta.load_database(str(tmp_path / "db2"), "test_db")
    with pytest.raises(CatalogError, match="DB name"):
        meta.load_database(str(tmp_path / "db3"), "bad name")


def test_create_table_assigns_ids_and_persists(tmp_path):
    path = str(tmp_path / "db")
    meta = BasicMeta()
    meta.load_database(path, "test_db")
    t1, t2 = make_table("t1"), make_table("t2")
    meta.create_table("test_db", t1)
    meta.create_table("test_db", t2)
    assert (t1.id, t2.id) == (0, 1)
    assert meta.has_table("test_db", "t2")

    reloaded = BasicMeta()
    reloaded.load_database(path, "test_db")
    assert reloaded.get_table("test_db", "t1") == t1
    assert [t.name for t in reloaded.get_database("test_db").tables] == ["t1", "t2"]


def test_create_duplicate_table(tmp_path):
    meta = BasicMeta()
    meta.load_database(str(tmp_path / "db"), "test_db")
    meta.create_table("test_db", make_table())
    with pytest.raises(TableAlreadyExistsError):
        meta.create_table("test_db", make_table())


def test_create_invalid_table_not_added(tmp_path):
    meta = BasicMeta()
    meta.load_database(str(tmp_path / "db"), "test_db")
    bad = make_table()
    bad.fields.pop()
    with pytest.raises(CatalogError):
        meta.create_table("test_db", bad)
    assert not meta.has_table("test_db", bad.name)


def test_missing_database_errors():
    meta = BasicMeta()
    with pytest.raises(DatabaseNotFoundError):
        meta.get_database("nope")
    with pytest.raises(DatabaseNotFoundError):
        meta.has_table("nope", "t")
    with pytest.raises(DatabaseNotFoundError):
        meta.create_table("nope", make_table())
    with pytest.raises(DatabaseNotFoundError):
        meta.unload_database("nope")


def test_drop_table(tmp_path):
    path = str(tmp_path / "db")
    meta = BasicMeta()
    meta.load_database(path, "test_db")
    meta.create_table("test_db", make_table("t1"))
    meta.drop_table("test_db", "t1")
    assert not meta.has_table("test_db", "t1")
    with pytest.raises(TableNotFoundError):
        meta.drop_table("test_db", "t1")
    with pytest.raises(TableNotFoundError):
        meta.get_table("test_db", "t1")
    with open(os.path.join(path, "catalog")) as fh:
        assert json.load(fh)["tables"] == []


def test_get_database_returns_copy(tmp_path):
    meta = BasicMeta()
    meta.load_database(str(tmp_path / "db"), "test_db")
    snapshot = meta.get_database("test_db")
    snapshot.tables.append(make_table())
    assert meta.get_database("test_db").tables == []


def test_unload_allows_reload(tmp_path):
    path = str(tmp_path / "db")
    meta = BasicMeta()
    meta.load_database(path, "test_db")
    meta.unload_database("test_db")
    assert not meta.has_database("test_db")
    meta.load_database(path, "test_db")
    assert meta.has_database("test_db")
    assert os.path.isdir(path)


def test_drop_database_removes_directory(tmp_path):
    path = str(tmp_path / "db")
    meta = BasicMeta()
    meta.load_database(path, "test_db")
    meta.drop_database("test_db")
    assert not os.path.exists(path)
    assert not meta.has_database("test_db")


def test_corrupt_catalog_raises(tmp_path):
    path = tmp_path / "db"
    path.mkdir()
    (path / "catalog").write_text("not json")
    with pytest.raises(CatalogError, match="Failed to parse"):
        BasicMeta().load_database(str(path), "test_db")