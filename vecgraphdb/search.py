"""Nearest-neighbour search guided by an ANN graph, with brute force as fallback."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace

from .ann_graph import ANNGraphSegment
from .candidate import Candidate
from .queues import add_into_queue, merge_into_fixed
from .spaces import l2_sqr

BRUTE_FORCE_THRESHOLD = 512

DistanceFunc = Callable[[Sequence[float], Sequence[float]], float]


class SearchError(Exception):
    """A search request cannot be served."""


class VecSearchExecutor:
    """Runs top-k queries against a vector table indexed by an ANN graph.

    Graphs with fewer than ``BRUTE_FORCE_THRESHOLD`` nodes are searched by
    comparing the query with every vector. Otherwise the graph is walked
    from its navigation point with a master queue of ``l_master``
    candidates and ``num_threads - 1`` worker queues of ``l_local``
    candidates; vectors beyond the graph are compared one by one and
    merged into the result.
    """

    def __init__(
        self,
        graph: ANNGraphSegment,
        vectors: Sequence[Sequence[float]],
        dist_func: DistanceFunc = l2_sqr,
        *,
        num_threads: int = 4,
        l_master: int = 100,
        l_local: int = 100,
        subsearch_iterations: int = 15,
    ) -> None:
        if num_threads < 1:
            raise ValueError(f"num_threads must be at least 1: {num_threads}")
        if l_master < 1 or l_local < 1:
            raise ValueError("queue lengths must be at least 1")
        if subsearch_iterations < 1:
            raise ValueError(
                f"subsearch_iterations must be at least 1: {subsearch_iterations}"
            )
        self.graph = graph
        self.vectors = vectors
        self.dist_func = dist_func
        self.ntotal = graph.record_number
        if len(vectors) < self.ntotal:
            raise ValueError(
                f"vector table holds {len(vectors)} vectors, graph has {self.ntotal} nodes"
            )
        self.start_search_point = graph.navigation_point
        self.num_threads = num_threads
        self.l_master = l_master
        self.l_local = l_local
        self.subsearch_iterations = subsearch_iterations
        self.brute_force = self.ntotal < BRUTE_FORCE_THRESHOLD
        if not self.brute_force and l_master > self.ntotal:
            raise ValueError(
                f"l_master {l_master} exceeds the {self.ntotal} nodes of the graph"
            )
        self.init_ids: list[int] = [] if self.brute_force else self.prepare_init_ids(l_master)

    def _distance(self, node: int, query: Sequence[float]) -> float:
        return self.dist_func(self.vectors[node], query)

    def prepare_init_ids(self, count: int) -> list[int]:
        """The first ``count`` nodes to seed a search with.

        The navigation point's neighbours come first, then the nodes after
        it in id order, wrapping around to 0.
        """
        if not 0 <= count <= self.ntotal:
            raise ValueError(f"cannot pick {count} of {self.ntotal} nodes")
        if count == 0:
            return []
        selected: list[int] = []
        seen: set[int] = set()
        for node in self.graph.neighbors(self.start_search_point):
            if len(selected) >= count:
                break
            if node in seen:
                continue
            seen.add(node)
            selected.append(node)

        next_id = self.start_search_point + 1
        while len(selected) < count:
            if next_id == self.ntotal:
                next_id = 0
            node = next_id
            next_id += 1
            if node in seen:
                continue
            seen.add(node)
            selected.append(node)
        return selected

    def brute_force_search(
        self, query: Sequence[float], start: int, end: int
    ) -> list[Candidate]:
        """Candidates for nodes ``start`` to ``end - 1``, nearest first."""
        if not 0 <= start <= end <= len(self.vectors):
            raise ValueError(
                f"range {start}..{end} outside the table of {len(self.vectors)} vectors"
            )
        return sorted(Candidate(node, self._distance(node, query)) for node in range(start, end))

    def search(
        self, query: Sequence[float], k: int, total: int | None = None
    ) -> list[Candidate]:
        """The ``k`` nearest of the first ``total`` vectors, nearest first.

        ``total`` defaults to the whole table; vectors past the graph's
        nodes are compared one by one.
        """
        if total is None:
            total = len(self.vectors)
        if k >= self.l_local:
            raise SearchError(f"Cannot search more than {self.l_local} results.")
        if total > len(self.vectors):
            raise ValueError(
                f"total {total} exceeds the table of {len(self.vectors)} vectors"
            )
        if self.brute_force:
            size = max(min(k, total), 0)
            return self.brute_force_search(query, 0, total)[:size]

        k1 = max(min(k, self.ntotal), 0)
        master = self._search_graph(query)
        if total > self.ntotal:
            extra = self.brute_force_search(query, self.ntotal, total)
            k2 = min(k, total - self.ntotal)
            head = master[:k1]
            if head and k2 > 0:
                merge_into_fixed(head, extra[:k2])
            master[:k1] = head
            size = max(min(k, total), 0)
        else:
            size = k1
        return [replace(c, is_checked=False) for c in master[:size]]

    def _search_graph(self, query: Sequence[float]) -> list[Candidate]:
        length = self.l_master
        visited = set(self.init_ids)
        master = sorted(Candidate(node, self._distance(node, query)) for node in self.init_ids)
        workers: list[list[Candidate]] = [[] for _ in range(self.num_threads - 1)]

        def bound() -> float:
            # The distance of the master queue's last slot, read as it changes.
            return master[length - 1].distance

        def expand(cand_id: int, queue: list[Candidate], capacity: int) -> int:
            lowest = capacity
            for neighbor in self.graph.neighbors(cand_id):
                if neighbor in visited:
                    continue
                visited.add(neighbor)
                dist = self._distance(neighbor, query)
                if dist > bound():
                    continue
                lowest = min(lowest, add_into_queue(queue, capacity, Candidate(neighbor, dist)))
            return lowest

        k_master = 0
        first = master[k_master]
        if not first.is_checked:
            first.is_checked = True
            r = expand(first.id, master, length)
        else:
            r = length
        k_master = r if r <= k_master else k_master + 1

        while self._pick_top_m_to_workers(master, workers, k_master):
            for position, queue in enumerate([*workers, master]):
                is_master = position == len(workers)
                k_uc = k_master if is_master else 0
                iterations = 0
                while iterations < self.subsearch_iterations and k_uc < len(queue):
                    cand = queue[k_uc]
                    if not cand.is_checked:
                        cand.is_checked = True
                        iterations += 1
                        r = expand(cand.id, queue, self.l_local)
                        k_uc = r if r <= k_uc else k_uc + 1
                    else:
                        k_uc += 1
                    if is_master:
                        k_master = k_uc
            r = self._merge_workers_into_master(master, workers)
            if r <= k_master:
                k_master = r
        return master

    def _pick_top_m_to_workers(
        self, master: list[Candidate], workers: list[list[Candidate]], k_uc: int
    ) -> int:
        """Hand unchecked master candidates round-robin to the workers.

        Returns how many unchecked candidates the master holds from ``k_uc``.
        """
        unchecked = 0
        dest = 0
        last = self.num_threads - 1
        for cand in master[k_uc:]:
            if cand.is_checked:
                continue
            unchecked += 1
            if dest != last:
                workers[dest].append(replace(cand))
                cand.is_checked = True
                if len(workers[dest]) == self.l_local:
                    break
                dest += 1
            else:
                dest = 0
        return unchecked

    def _merge_workers_into_master(
        self, master: list[Candidate], workers: list[list[Candidate]]
    ) -> int:
        lowest = self.l_master
        for queue in workers:
            if not queue:
                continue
            head = master[: self.l_master]
            r = merge_into_fixed(head, queue)
            master[: self.l_master] = head
            lowest = min(lowest, r)
            queue.clear()
        return lowest