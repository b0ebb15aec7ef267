"""Navigable graph index of one vector field, stored in compressed adjacency form."""

from __future__ import annotations

import os
import struct
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

_INT64 = struct.Struct("<q")


def graph_file_path(db_catalog_path: str | os.PathLike[str], table_id: int, field_id: int) -> str:
    """Where the graph of a table's field is stored."""
    return f"{os.fspath(db_catalog_path)}/{table_id}/ann_graph_{field_id}.bin"


def _read_int64s(data: bytes, offset: int, count: int) -> tuple[list[int], int]:
    end = offset + 8 * count
    if count < 0 or end > len(data):
        raise ValueError("ANN graph file is truncated")
    return list(struct.unpack_from(f"<{count}q", data, offset)), end


@dataclass
class ANNGraphSegment:
    """Graph whose node ``i`` has neighbours ``neighbor_list[offset_table[i]:offset_table[i+1]]``.

    ``skip_sync_disk`` is set for graphs that live only in memory; saving
    such a graph does nothing.
    """

    skip_sync_disk: bool = True
    first_record_id: int = 0
    offset_table: list[int] = field(default_factory=lambda: [0])
    neighbor_list: list[int] = field(default_factory=list)
    navigation_point: int = 0

    @property
    def record_number(self) -> int:
        """Number of nodes in the graph."""
        return len(self.offset_table) - 1

    @property
    def total_edges(self) -> int:
        return self.offset_table[-1]

    @classmethod
    def open(
        cls, db_catalog_path: str | os.PathLike[str], table_id: int, field_id: int
    ) -> ANNGraphSegment:
        """Load the graph from disk, or create and store an empty one."""
        path = Path(graph_file_path(db_catalog_path, table_id, field_id))
        if path.exists():
            data = path.read_bytes()
            (record_number, first_record_id), pos = _read_int64s(data, 0, 2)
            offsets, pos = _read_int64s(data, pos, record_number + 1)
            neighbors, pos = _read_int64s(data, pos, offsets[-1])
            (navigation_point,), _ = _read_int64s(data, pos, 1)
            return cls(
                skip_sync_disk=False,
                first_record_id=first_record_id,
                offset_table=offsets,
                neighbor_list=neighbors,
                navigation_point=navigation_point,
            )
        path.parent.mkdir(parents=True, exist_ok=True)
        segment = cls(skip_sync_disk=False)
        segment.save(db_catalog_path, table_id, field_id)
        return segment

    @classmethod
    def from_neighbor_lists(
        cls, neighbor_lists: Iterable[Sequence[int]], navigation_point: int
    ) -> ANNGraphSegment:
        """Build an in-memory graph from each node's list of neighbours."""
        offsets = [0]
        neighbors: list[int] = []
        for node_neighbors in neighbor_lists:
            neighbors.extend(int(n) for n in node_neighbors)
            offsets.append(len(neighbors))
        return cls(
            skip_sync_disk=True,
            offset_table=offsets,
            neighbor_list=neighbors,
            navigation_point=int(navigation_point),
        )

    def save(self, db_catalog_path: str | os.PathLike[str], table_id: int, field_id: int) -> None:
        """Write the graph atomically through a temporary file."""
        if self.skip_sync_disk:
            return
        path = graph_file_path(db_catalog_path, table_id, field_id)
        tmp_path = path + ".tmp"
        edges = self.neighbor_list[: self.total_edges]
        with open(tmp_path, "wb") as fh:
            fh.write(_INT64.pack(self.record_number))
            fh.write(_INT64.pack(self.first_record_id))
            fh.write(struct.pack(f"<{len(self.offset_table)}q", *self.offset_table))
            fh.write(struct.pack(f"<{len(edges)}q", *edges))
            fh.write(_INT64.pack(self.navigation_point))
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)

    def neighbors(self, node: int) -> list[int]:
        """Neighbours of ``node``."""
        if not 0 <= node < self.record_number:
            raise IndexError(f"node {node} out of range 0..{self.record_number - 1}")
        return self.neighbor_list[self.offset_table[node] : self.offset_table[node + 1]]

    def debug(self) -> str:
        """Readable dump of the offset table, neighbour list and navigation point."""
        offsets = " ".join(str(v) for v in self.offset_table)
        edges = " ".join(str(v) for v in self.neighbor_list[: self.total_edges])
        return (
            f"offset_table:\n{offsets}\n"
            f"neighbor_list:\n{edges}\n"
            f"navigation_point:\n{self.navigation_point}\n"
        )