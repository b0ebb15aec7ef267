"""Distance functions and the vector spaces that use them."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from itertools import islice

FLOAT_SIZE = 4

DistanceFunc = Callable[[Sequence, Sequence], float]


def _pairs(a: Sequence, b: Sequence):
    return zip(a, b, strict=True)


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return sum(x * y for x, y in _pairs(a, b))


def l2_sqr(a: Sequence[float], b: Sequence[float]) -> float:
    """Squared Euclidean distance between two vectors of equal length."""
    return sum((x - y) * (x - y) for x, y in _pairs(a, b))


def inner_product_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """One minus the inner product of the two vectors."""
    return 1.0 - _dot(a, b)


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Negated inner product; for normalised vectors this orders by cosine similarity."""
    return -1.0 * _dot(a, b)


def l2_sqr_int(a: Sequence[int], b: Sequence[int]) -> int:
    """Squared Euclidean distance between two vectors of unsigned bytes."""
    return sum((x - y) * (x - y) for x, y in _pairs(bytes(a), bytes(b)))


class _Space:
    """A vector space of fixed dimension with its distance function."""

    element_size = FLOAT_SIZE
    dist_func: DistanceFunc

    def __init__(self, dim: int) -> None:
        if dim < 0:
            raise ValueError(f"dimension must not be negative: {dim}")
        self.dim = dim
        self.data_size = dim * self.element_size

    def _head(self, vector: Sequence) -> list:
        head = list(islice(vector, self.dim))
        if len(head) < self.dim:
            raise ValueError(
                f"vector has {len(head)} elements, space dimension is {self.dim}"
            )
        return head

    def distance(self, a: Sequence, b: Sequence):
        """Distance over the first ``dim`` elements of each vector."""
        return type(self).dist_func(self._head(a), self._head(b))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dim={self.dim})"


class L2Space(_Space):
    """Float vectors compared by squared Euclidean distance."""

    dist_func = staticmethod(l2_sqr)

    def distance(self, a: Sequence[float], b: Sequence[float]) -> float:
        return super().distance(a, b)


class InnerProductSpace(_Space):
    """Float vectors compared by one minus their inner product."""

    dist_func = staticmethod(inner_product_distance)

    def distance(self, a: Sequence[float], b: Sequence[float]) -> float:
        return super().distance(a, b)


class CosineSpace(_Space):
    """Float vectors compared by their negated inner product."""

    dist_func = staticmethod(cosine_distance)

    def distance(self, a: Sequence[float], b: Sequence[float]) -> float:
        return super().distance(a, b)


class L2SpaceI(_Space):
    """Byte vectors compared by squared Euclidean distance."""

    element_size = 1
    dist_func = staticmethod(l2_sqr_int)

    def distance(self, a: Sequence[int], b: Sequence[int]) -> int:
        return super().distance(a, b)