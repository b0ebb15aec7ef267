# vecgraphdb

The storage and search core of a small vector database, in plain Python
with no third-party dependencies.

## What is in it

- `vecgraphdb.schema`: the enums `FieldType` and `MetricType`, and the
  dataclasses `FieldSchema`, `AutoEmbedding`, `TableSchema` and
  `DatabaseSchema`. `FieldType.is_vector()` tells whether a type is
  `VECTOR_FLOAT` or `VECTOR_DOUBLE`.
- `vecgraphdb.catalog`: `BasicMeta`, an implementation of the abstract
  `Meta` interface. It loads databases from catalog directories and
  creates, validates, looks up and drops tables. It keeps the JSON file
  `catalog` in each database directory up to date. The module also has
  `validate_schema`, `is_valid_name`, `new_table_id`, and the JSON
  converters `field_schema_to_json`, `field_schema_from_json`,
  `table_schema_to_json`, `table_schema_from_json` and
  `database_schema_to_json`. Failures raise `CatalogError` or one of its
  subclasses: `DatabaseNotFoundError`, `TableNotFoundError` and
  `TableAlreadyExistsError`.
- `vecgraphdb.spaces` holds the distance functions and the spaces that use them:

  | Function | Space | Distance |
  | --- | --- | --- |
  | `l2_sqr` | `L2Space` | squared Euclidean |
  | `inner_product_distance` | `InnerProductSpace` | one minus the inner product |
  | `cosine_distance` | `CosineSpace` | negated inner product |
  | `l2_sqr_int` | `L2SpaceI` | squared Euclidean over byte vectors |

  A space's `distance(a, b)` compares the first `dim` elements of each
  vector.
- `vecgraphdb.wal`: `WriteAheadLog` appends numbered `LogEntryType.INSERT`
  and `LogEntryType.DELETE` entries to time-stamped `.log` files under
  `<base_path>/<table_id>/wal/`. It can replay entries as `LogEntry`
  objects and can remove old files.
- `vecgraphdb.ann_graph` provides `ANNGraphSegment` and `graph_file_path`.
  `ANNGraphSegment` is a neighbour graph held as an offset table plus one
  flat neighbour list, with a navigation point. It is stored as
  `<db_path>/<table_id>/ann_graph_<field_id>.bin`.
- `vecgraphdb.candidate`: `Candidate`, a node id with its distance to a
  query. Candidates order by distance, then by id.
- `vecgraphdb.queues`: helpers for bounded, sorted lists of candidates.
  These are `add_into_queue`, `add_into_queue_at`, `insert_one_element_at`,
  `merge_into_fixed` and `merge_into_growing`.
- `vecgraphdb.search` provides `VecSearchExecutor` and `SearchError`.
  `VecSearchExecutor` answers top-k queries over a vector table indexed by
  an `ANNGraphSegment`.

## Installation

Install it with pip like any other package. It needs nothing beyond the
standard library.

## Defining a table

```python
from vecgraphdb.catalog import BasicMeta, CatalogError
from vecgraphdb.schema import FieldSchema, FieldType, MetricType, TableSchema

meta = BasicMeta()
meta.load_database("/tmp/mydb", "my_db")

table = TableSchema(
    name="documents",
    fields=[
        FieldSchema(name="id", field_type=FieldType.INT4, is_primary_key=True),
        FieldSchema(name="doc", field_type=FieldType.STRING),
        FieldSchema(
            name="embedding",
            field_type=FieldType.VECTOR_FLOAT,
            vector_dimension=4,
            metric_type=MetricType.EUCLIDEAN,
        ),
    ],
)

try:
    meta.create_table("my_db", table)   # also sets table.id
except CatalogError as exc:
    print(f"rejected: {exc}")

print(meta.has_table("my_db", "documents"))   # True
print(meta.get_table("my_db", "documents").fields[0].name)   # id
```

Names of databases, tables and fields must start with a letter or an
underscore. After that they may contain only letters, digits and
underscores.

`create_table` rejects a table in any of these cases:

- a table of that name already exists;
- two fields share a name;
- a field has type `UNKNOWN`;
- more than one field is a primary key;
- there is no vector field;
- a vector field has a dimension that is not positive;
- a vector field has metric `UNKNOWN`.

Table ids are one more than the largest id in use. `get_database` and
`get_table` return copies. `drop_database` also removes the database
directory. A database named `default` always exists and is never written
to disk.

## Distances

```python
from vecgraphdb.spaces import CosineSpace, L2Space

l2 = L2Space(3)
print(l2.distance([1.0, 2.0, 3.0], [1.0, 2.0, 5.0]))   # 4.0

cos = CosineSpace(2)
print(cos.distance([1.0, 0.0], [1.0, 0.0]))            # -1.0
```

## Graph segments

```python
from vecgraphdb.ann_graph import ANNGraphSegment

segment = ANNGraphSegment.from_neighbor_lists([[1, 2], [0], [0, 1]], navigation_point=0)
print(segment.neighbors(2))   # [0, 1]
print(segment.debug())
```

A segment built with `from_neighbor_lists` lives in memory only, so
calling `save` on it does nothing.

`ANNGraphSegment.open(db_catalog_path, table_id, field_id)` loads a saved
segment. If no file exists yet, it creates and stores an empty one. `save`
on an opened segment writes through a temporary file and then renames it
into place.

## Searching

```python
from vecgraphdb.ann_graph import ANNGraphSegment
from vecgraphdb.search import VecSearchExecutor

vectors = [[0.0, 0.0], [1.0, 0.0], [5.0, 5.0]]
graph = ANNGraphSegment.from_neighbor_lists([[1], [0, 2], [1]], navigation_point=0)
executor = VecSearchExecutor(graph, vectors)

print([c.id for c in executor.search([0.9, 0.0], k=2)])   # [1, 0]
```

`search(query, k, total=None)` returns the `k` nearest `Candidate`
objects, nearest first. The default distance is `l2_sqr`; pass another
`dist_func` to use a different one.

How the search runs depends on the size of the graph:

- Below 512 nodes it compares the query with every vector.
- From 512 nodes up it walks the graph from the navigation point. It keeps
  a master queue of `l_master` candidates and `num_threads - 1` worker
  queues of `l_local` candidates. The workers are run one after another in
  the calling thread.

Vectors beyond the graph's nodes, up to `total`, are compared one by one
and merged into the result.

A `k` of `l_local` or more raises `SearchError`.

## Write-ahead log

```python
from vecgraphdb.wal import LogEntryType, WriteAheadLog

with WriteAheadLog("/tmp/mydb", 0) as wal:
    entry_id = wal.write_entry(LogEntryType.INSERT, '{"id": 1}')
    wal.replay(0, lambda entry: print(entry.global_id, entry.entry_type, entry.content))
```

Writing an entry:

- `write_entry` returns the new entry's global id.
- On a log created with `enabled=False` it writes nothing and returns the
  current id.
- A write starts a new file once ten minutes have passed since the last
  rotation.
- The highest id is stored in `last_id.txt` on `close` and after `replay`,
  and is read back when the log is opened again.

Replaying and cleaning up:

- `replay(consumed_id, apply)` calls `apply` for every entry whose id is
  greater than `consumed_id`, oldest first.
- If `apply` raises an exception, it is logged and the replay continues.
- `replay` deletes every file that holds nothing newer than `consumed_id`,
  except the newest file.
- `clean_up_old_files(now=None)` removes log files older than a week.

## What it does not do

- There is no server and no command-line program.
- There is no storage of table records. The package records inserts in
  the write-ahead log, but does not apply them anywhere; `replay` hands
  entries to a callback of your choosing.
- It cannot build a graph from raw vectors. Graphs come from
  `from_neighbor_lists` or from a file saved earlier.

## Running the tests

Install the `test` extra and run `pytest` from the project root.