"""
Tests de la recherche des k plus proches voisins.
"""

import math
from collections import namedtuple

import numpy as np
import pytest

from kdindex.builder.builder import build_tree
from kdindex.core.errors import DimensionMismatch, InvalidRadius
from kdindex.core.norms import chebyshev, euclidean, manhattan, minkowski
from kdindex.core.point import make_point
from kdindex.search.searcher import (
    nearest,
    nearest_within,
    radius_to_distance,
    search,
)


def brute_force_distances(points, query, k, distance, radius=None):
    """Distances des k plus proches voisins par recherche exhaustive."""
    distances = sorted(distance(query, p) for p in points)
    if radius is not None:
        limit = radius_to_distance(radius, query, len(query), distance)
        distances = [d for d in distances if d < limit]
    return distances[:k]


# ----------------------------------------------------------------------
# Scénarios de référence
# ----------------------------------------------------------------------

def test_no_point_within_radius():
    tree = build_tree([(65, 64), (97, 15), (14, 21)])
    assert nearest_within(tree, (4, 67), 40, k=2) == []


def test_fewer_points_within_radius_than_k():
    tree = build_tree([(4, -1), (-10, -1), (-9, 1), (5, -4), (-8, 1)])
    found = nearest_within(tree, (9, 5), 10, k=3)
    assert found == [(4, -1), (5, -4)]


def test_singleton_real_point_within_radius():
    tree = build_tree([(3.909, 6.154)])
    found = nearest_within(tree, (8.514, 6.342), 5.0, k=3)
    assert len(found) == 1
    assert found[0] == pytest.approx((3.909, 6.154), abs=1e-3)


def test_fewer_points_in_tree_than_k_with_negative_values():
    points = [(75.892, -0.514, 53.958), (7.810, -16.497, 70.660)]
    tree = build_tree(points)
    found = nearest_within(tree, (58.711, -88.995, 20.744), 150.0, k=3)
    assert found == points


# ----------------------------------------------------------------------
# Cas dégénérés et validation
# ----------------------------------------------------------------------

def test_k_zero_returns_empty():
    tree = build_tree([(0, 0)])
    assert nearest(tree, (0, 0), k=0) == []
    assert nearest_within(tree, (0, 0), 1, k=0) == []


def test_empty_tree_returns_empty():
    tree = build_tree([])
    assert nearest(tree, (0, 0), k=3) == []
    assert nearest_within(tree, (0, 0), 1, k=1) == []


@pytest.mark.parametrize("radius", [0, -1, -0.5, float("nan")])
def test_invalid_radius(radius):
    tree = build_tree([(13.29, -20.3), (-21.2, -92.33)])
    with pytest.raises(InvalidRadius):
        nearest_within(tree, (0.0, 0.0), radius, k=2)


def test_invalid_radius_checked_before_anything_else():
    """Le rayon est validé même sur un arbre vide ou avec k = 0."""
    with pytest.raises(InvalidRadius):
        nearest_within(build_tree([]), (0, 0), 0, k=1)
    with pytest.raises(InvalidRadius):
        nearest_within(build_tree([(1, 1)]), (0, 0), -2, k=0)


def test_query_dimension_mismatch():
    tree = build_tree([(1, 2), (3, 4)])
    with pytest.raises(DimensionMismatch):
        nearest(tree, (1, 2, 3), k=1)
    with pytest.raises(DimensionMismatch):
        nearest_within(tree, (1,), 5, k=1)


def test_negative_k_rejected():
    tree = build_tree([(1, 2)])
    with pytest.raises(ValueError):
        nearest(tree, (1, 2), k=-1)


def test_k_larger_than_tree_returns_everything_sorted():
    points = [(0, 0), (5, 5), (1, 1), (3, 3)]
    tree = build_tree(points)
    assert nearest(tree, (0, 0), k=10) == [(0, 0), (1, 1), (3, 3), (5, 5)]


def test_default_k_is_one():
    tree = build_tree([(0, 0), (5, 5), (1, 1)])
    assert nearest(tree, (4, 4)) == [(5, 5)]
    assert tree.nearest_to((4, 4)) == [(5, 5)]
    assert tree.nearest_within((4, 4), 0.5) == []


def test_duplicates_returned_as_distinct_results():
    tree = build_tree([(1, 1), (1, 1), (2, 2)])
    assert nearest(tree, (1, 1), k=3) == [(1, 1), (1, 1), (2, 2)]


def test_search_returns_distances():
    tree = build_tree([(0, 0), (3, 4)])
    matches = search(tree, (0, 0), k=2)
    assert matches == [((0, 0), 0.0), ((3, 4), 5.0)]


def test_infinite_radius_is_unbounded():
    tree = build_tree([(0, 0), (100, 100)])
    assert nearest_within(tree, (0, 0), math.inf, k=2) == [(0, 0), (100, 100)]


def test_radius_is_strict():
    """Un point exactement sur la sphère n'est pas retenu."""
    tree = build_tree([(3, 4), (1, 0)])
    assert nearest_within(tree, (0, 0), 5, k=2) == [(1, 0)]


# ----------------------------------------------------------------------
# Types de points
# ----------------------------------------------------------------------

def test_namedtuple_points():
    Point2 = namedtuple("Point2", ["x", "y"])
    points = [Point2(0, 0), Point2(2, 2), Point2(5, 1)]
    tree = build_tree(points)
    assert nearest_within(tree, Point2(2, 1), 2, k=3) == [Point2(2, 2)]


class Vec:
    """Point utilisateur minimal: longueur, indexation et construction depuis une séquence."""

    def __init__(self, coords):
        self.coords = list(coords)

    def __len__(self):
        return len(self.coords)

    def __getitem__(self, index):
        return self.coords[index]


def vec_distance(a, b):
    return math.sqrt(sum((a[i] - b[i]) ** 2 for i in range(len(a))))


def test_custom_point_type_and_distance():
    points = [Vec((x, -x)) for x in range(10)]
    tree = build_tree(points)
    found = nearest_within(tree, Vec((2.2, -2.2)), 2.0, k=5, distance=vec_distance)
    assert [p.coords for p in found] == [[2, -2], [3, -3], [1, -1]]


class Pair:
    """Point à deux coordonnées nommées: pas de construction depuis une séquence, écriture par indice."""

    def __init__(self, x, y):
        self.x = x
        self.y = y

    def __len__(self):
        return 2

    def __getitem__(self, index):
        return (self.x, self.y)[index]

    def __setitem__(self, index, value):
        if index == 0:
            self.x = value
        else:
            self.y = value


def test_make_point_writes_coordinates_into_a_copy():
    model = Pair(3, 4)
    point = make_point(model, [1.5, 0.0])
    assert isinstance(point, Pair)
    assert (point.x, point.y) == (1.5, 0.0)
    assert (model.x, model.y) == (3, 4)


def test_point_type_written_by_index():
    points = [Pair(0, 0), Pair(1, 1), Pair(4, 4)]
    tree = build_tree(points)
    query = Pair(0, 0)
    found = nearest_within(tree, query, 2.0, k=3, distance=vec_distance)
    assert [(p.x, p.y) for p in found] == [(0, 0), (1, 1)]
    assert (query.x, query.y) == (0, 0)


def test_integer_numpy_query_with_real_radius():
    """Les points synthétiques du rayon sont construits en flottant."""
    points = np.array([[0, 0], [1, 0], [2, 0]], dtype=np.int64)
    tree = build_tree(points)
    found = nearest_within(tree, np.array([0, 0]), 1.5, k=3)
    assert [p.tolist() for p in found] == [[0, 0], [1, 0]]


def test_unsigned_coordinates():
    points = np.array([[10, 10], [200, 200], [5, 250]], dtype=np.uint8)
    tree = build_tree(points)
    found = nearest(tree, np.array([250, 5], dtype=np.uint8), k=3)
    expected = brute_force_distances(points, np.array([250, 5]), 3, euclidean)
    assert [euclidean(np.array([250, 5]), p) for p in found] == pytest.approx(expected)


# ----------------------------------------------------------------------
# Exactitude contre la recherche exhaustive
# ----------------------------------------------------------------------

NORMS = [euclidean, manhattan, chebyshev, minkowski(3)]


@pytest.mark.parametrize("distance", NORMS)
@pytest.mark.parametrize("k", [1, 3, 10, 250])
def test_matches_brute_force_unbounded(distance, k):
    rng = np.random.default_rng(k)
    points = rng.uniform(-50, 50, size=(200, 3))
    tree = build_tree(points)
    for query in rng.uniform(-60, 60, size=(20, 3)):
        matches = search(tree, query, k=k, distance=distance)
        expected = brute_force_distances(points, query, k, distance)
        assert len(matches) == min(k, len(points))
        assert [d for _, d in matches] == pytest.approx(expected)


@pytest.mark.parametrize("distance", NORMS)
@pytest.mark.parametrize("radius", [1.0, 10.0, 40.0])
def test_matches_brute_force_within_radius(distance, radius):
    rng = np.random.default_rng(int(radius))
    points = rng.uniform(-50, 50, size=(200, 2))
    tree = build_tree(points)
    limit = radius_to_distance(radius, points[0], 2, distance)
    for query in rng.uniform(-50, 50, size=(20, 2)):
        matches = search(tree, query, k=7, radius=radius, distance=distance)
        expected = brute_force_distances(points, query, 7, distance, radius=radius)
        assert [d for _, d in matches] == pytest.approx(expected)
        assert all(d < limit for _, d in matches)


def test_matches_brute_force_on_integer_grid_with_ties():
    points = [(x, y) for x in range(-5, 6) for y in range(-5, 6)]
    tree = build_tree(points)
    for query in [(0, 0), (0.5, 0.5), (5, 5), (-7, 2), (2, -3)]:
        for k in (1, 4, 9, 30):
            matches = search(tree, query, k=k)
            expected = brute_force_distances(points, query, k, euclidean)
            assert [d for _, d in matches] == pytest.approx(expected)


def test_results_are_sorted_and_from_tree():
    rng = np.random.default_rng(11)
    points = [tuple(p) for p in rng.normal(size=(150, 4))]
    tree = build_tree(points)
    query = tuple(rng.normal(size=4))
    matches = search(tree, query, k=25)
    distances = [d for _, d in matches]
    assert distances == sorted(distances)
    assert all(p in points for p, _ in matches)


def test_radius_to_distance_uses_the_metric():
    query = (0.0, 0.0, 0.0)
    assert radius_to_distance(2.0, query, 3, euclidean) == pytest.approx(2.0)
    assert radius_to_distance(2.0, query, 3, manhattan) == pytest.approx(2.0)

    def squared(a, b):
        return sum((x - y) ** 2 for x, y in zip(a, b))

    assert radius_to_distance(3.0, query, 3, squared) == pytest.approx(9.0)


def test_search_through_a_deep_chain_of_duplicates():
    """Une chaîne de doublons plus profonde que la limite de récursion reste interrogeable."""
    points = [(1.0, 1.0)] * 2500 + [(0.0, 0.0)]
    tree = build_tree(points)
    assert tree.get_height() == 2501

    assert nearest(tree, (0.1, 0.1), k=2) == [(0.0, 0.0), (1.0, 1.0)]
    assert nearest(tree, (1.0, 1.0), k=5) == [(1.0, 1.0)] * 5
    # Branche préférée absente à chaque niveau: toute la chaîne passe par l'autre branche
    assert nearest_within(tree, (5.0, 5.0), 1.0, k=3) == []
    assert nearest_within(tree, (1.5, 1.5), 1.0, k=2) == [(1.0, 1.0)] * 2
