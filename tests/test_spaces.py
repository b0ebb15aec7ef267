import pytest

from vecgraphdb.spaces import (
    CosineSpace,
    InnerProductSpace,
    L2Space,
    L2SpaceI,
    cosine_distance,
    inner_product_distance,
    l2_sqr,
    l2_sqr_int,
)

A = [0.5, -1.0, 2.0, 0.25]
B = [1.5, 0.0, -0.5, 3.0]


def test_l2_known_value():
    assert l2_sqr([0.0, 0.0], [3.0, 4.0]) == 25.0


def test_l2_zero_for_identical():
    assert l2_sqr(A, A) == 0.0


def test_l2_symmetric():
    assert l2_sqr(A, B) == pytest.approx(l2_sqr(B, A))


def test_l2_matches_inner_product_identity():
    aa = 1.0 - inner_product_distance(A, A)
    bb = 1.0 - inner_product_distance(B, B)
    ab = 1.0 - inner_product_distance(A, B)
    assert l2_sqr(A, B) == pytest.approx(aa + bb - 2 * ab)


def test_cosine_is_inner_product_shifted():
    assert cosine_distance(A, B) == pytest.approx(inner_product_distance(A, B) - 1.0)


def test_inner_product_orthogonal():
    assert inner_product_distance([1.0, 0.0], [0.0, 1.0]) == 1.0


def test_length_mismatch_raises():
    with pytest.raises(ValueError):
        l2_sqr([1.0, 2.0], [1.0])
    with pytest.raises(ValueError):
        cosine_distance([1.0], [1.0, 2.0])


def test_l2_int_bytes_and_lists_agree():
    a = [10, 200, 0, 255]
    b = [20, 100, 5, 0]
    assert l2_sqr_int(bytes(a), bytes(b)) == l2_sqr_int(a, b)
    assert l2_sqr_int(a, a) == 0


def test_l2_int_rejects_out_of_range():
    with pytest.raises(ValueError):
        l2_sqr_int([256], [0])


def test_l2_int_agrees_with_float_version():
    a = [1, 2, 3, 4, 5]
    b = [5, 4, 3, 2, 1]
    assert l2_sqr_int(a, b) == l2_sqr(a, b)


def test_space_data_sizes():
    assert L2Space(8).data_size == 32
    assert L2SpaceI(8).data_size == 8
    assert CosineSpace(3).dim == 3


def test_spaces_match_functions():
    assert L2Space(4).distance(A, B) == pytest.approx(l2_sqr(A, B))
    assert InnerProductSpace(4).distance(A, B) == pytest.approx(inner_product_distance(A, B))
    assert CosineSpace(4).distance(A, B) == pytest.approx(cosine_distance(A, B))
    assert L2SpaceI(3).distance([1, 2, 3], [3, 2, 1]) == l2_sqr_int([1, 2, 3], [3, 2, 1])


def test_space_uses_only_leading_dimensions():
    space = L2Space(2)
    assert space.distance(A, B) == pytest.approx(l2_sqr(A[:2], B[:2]))


def test_space_rejects_short_vector():
    with pytest.raises(ValueError):
        L2Space(5).distance(A, B)


def test_space_rejects_negative_dimension():
    with pytest.raises(ValueError):
        InnerProductSpace(-1)


def test_space_dist_func_exposed():
    assert L2Space(2).dist_func([0.0, 0.0], [1.0, 1.0]) == l2_sqr([0.0, 0.0], [1.0, 1.0])