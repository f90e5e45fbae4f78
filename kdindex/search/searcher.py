"""
Module de recherche des plus proches voisins dans un kd-tree.

Recherche exacte par séparation et évaluation (branch and bound): descente
dans la branche préférée, puis exploration de l'autre branche seulement si
l'hyperplan de coupe est plus proche que le pire candidat retenu.
"""

import math
import time
from bisect import bisect_left
from operator import itemgetter
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed
from sklearn.neighbors import NearestNeighbors
from tqdm.auto import tqdm

from kdindex.core.errors import DimensionMismatch, InvalidRadius
from kdindex.core.norms import DistanceFn, chebyshev, euclidean, manhattan
from kdindex.core.point import Point, dimension_of, make_point
from kdindex.core.tree import KdNode, KdTree

# Un candidat: (point, distance au point requête)
Match = Tuple[Point, float]

# Métriques natives de scikit-learn pour la recherche exhaustive de référence
_SKLEARN_METRICS = {
    euclidean: "euclidean",
    manhattan: "manhattan",
    chebyshev: "chebyshev",
}


def radius_to_distance(radius: float, query: Point, dimension: int, distance: DistanceFn) -> float:
    """
    Convertit un rayon en distance exprimée dans les unités de ``distance``.

    Calcule la distance entre l'origine et le point (radius, 0, ..., 0), ce qui
    suppose que la fonction de distance est homogène.

    Args:
        radius: Rayon de recherche
        query: Point requête, sert de modèle pour construire les points synthétiques
        dimension: Dimension de l'espace
        distance: Fonction de distance

    Returns:
        float: Distance équivalente au rayon
    """
    origin = make_point(query, [0.0] * dimension)
    surface = make_point(query, [radius] + [0.0] * (dimension - 1))
    return distance(origin, surface)


class _Visit:
    """Nœud en cours d'exploration dans la pile de ``search_node``."""

    __slots__ = ("node", "depth", "stage", "current", "within_radius",
                 "other", "axis_gap", "candidates")

    def __init__(self, node: KdNode, depth: int):
        self.node = node
        self.depth = depth
        # 0: première visite, 1: retour de la branche préférée, 2: retour de l'autre branche
        self.stage = 0
        self.current = None
        self.within_radius = False
        self.other = None
        self.axis_gap = 0.0
        self.candidates = None


def search_node(
    node: KdNode,
    query: Point,
    depth: int,
    k: int,
    distance: DistanceFn,
    limit: Optional[float] = None
) -> List[Match]:
    """
    Recherche des k plus proches voisins dans un sous-arbre.

    Chaque nœud explore sa branche préférée, puis l'autre branche si
    l'hyperplan est plus proche que le pire candidat ou si trop peu de
    candidats ont été trouvés, et s'insère enfin dans la liste. La descente
    utilise une pile explicite pour les arbres profonds (doublons).

    Args:
        node: Racine du sous-arbre (non nulle)
        query: Point requête
        depth: Profondeur de ``node``
        k: Nombre maximal de candidats (k >= 1)
        distance: Fonction de distance
        limit: Distance maximale (exclue) des candidats, None si non bornée

    Returns:
        List[Match]: Au plus k candidats triés par distance croissante
    """
    dimension = dimension_of(query)
    stack = [_Visit(node, depth)]
    returned = []

    while stack:
        visit = stack[-1]
        node = visit.node

        if visit.stage == 0:
            visit.current = (node.value, distance(query, node.value))
            visit.within_radius = limit is None or visit.current[1] < limit

            if node.is_leaf():
                stack.pop()
                returned = [visit.current] if visit.within_radius else []
                continue

            axis = visit.depth % dimension
            if query[axis] <= node.value[axis]:
                preferred, visit.other = node.left, node.right
            else:
                preferred, visit.other = node.right, node.left
            visit.axis_gap = abs(float(query[axis]) - float(node.value[axis]))

            visit.stage = 1
            if preferred is not None:
                stack.append(_Visit(preferred, visit.depth + 1))
                continue
            returned = []

        if visit.stage == 1:
            candidates = returned
            # Tant que la liste n'est pas pleine, aucun élagage n'est possible
            best = candidates[-1][1] if len(candidates) >= k else math.inf
            explore = visit.axis_gap < best or len(candidates) + visit.depth < k
            if visit.other is not None and explore:
                visit.candidates = candidates
                visit.stage = 2
                stack.append(_Visit(visit.other, visit.depth + 1))
                continue
        else:
            candidates = visit.candidates + returned
            # Tri stable: à distance égale, la branche préférée reste devant
            candidates.sort(key=itemgetter(1))
            del candidates[k:]

        current = visit.current
        if visit.within_radius and (len(candidates) < k or current[1] < candidates[-1][1]):
            position = bisect_left([match[1] for match in candidates], current[1])
            candidates.insert(position, current)
            del candidates[k:]

        stack.pop()
        returned = candidates

    return returned


def search(
    tree: KdTree,
    query: Point,
    k: int = 1,
    radius: Optional[float] = None,
    distance: Optional[DistanceFn] = None
) -> List[Match]:
    """
    Recherche les k plus proches voisins de ``query``, avec leurs distances.

    Args:
        tree: kd-tree construit
        query: Point requête
        k: Nombre maximal de résultats (k >= 0)
        radius: Rayon de recherche strictement positif, None (ou inf) pour une recherche non bornée
        distance: Fonction de distance (euclidienne par défaut)

    Returns:
        List[Match]: Couples (point, distance) triés par distance croissante

    Raises:
        InvalidRadius: si ``radius`` n'est pas strictement positif
        DimensionMismatch: si ``query`` n'a pas la dimension de l'arbre
    """
    distance = distance or euclidean

    if radius is not None and not radius > 0:
        raise InvalidRadius(radius)
    if k < 0:
        raise ValueError(f"k doit être positif ou nul (reçu {k})")

    if k == 0 or tree.root is None:
        return []

    if dimension_of(query) != tree.dimension:
        raise DimensionMismatch(tree.dimension, dimension_of(query))

    limit = None
    if radius is not None and not math.isinf(radius):
        limit = radius_to_distance(radius, query, tree.dimension, distance)

    return search_node(tree.root, query, 0, k, distance, limit)


def nearest(tree: KdTree, query: Point, k: int = 1,
            distance: Optional[DistanceFn] = None) -> List[Point]:
    """
    Trouve les k points les plus proches de ``query``.

    Si l'arbre contient moins de k points, ils sont tous retournés.

    Returns:
        List: Points triés du plus proche au plus lointain
    """
    return [point for point, _ in search(tree, query, k=k, distance=distance)]


def nearest_within(
    tree: KdTree,
    query: Point,
    radius: float,
    k: int = 1,
    distance: Optional[DistanceFn] = None
) -> List[Point]:
    """
    Trouve les k points les plus proches de ``query`` strictement à l'intérieur de ``radius``.

    Returns:
        List: Points triés du plus proche au plus lointain

    Raises:
        InvalidRadius: si ``radius <= 0``
    """
    if radius is None or not radius > 0:
        raise InvalidRadius(radius)
    return [point for point, _ in search(tree, query, k=k, radius=radius, distance=distance)]


class Searcher:
    """
    Recherche dans un kd-tree avec une fonction de distance fixée.
    L'arbre n'est jamais modifié: plusieurs requêtes peuvent s'exécuter en parallèle.
    """

    def __init__(self, tree: KdTree, distance: Optional[DistanceFn] = None,
                 n_jobs: int = 1, verbose: bool = False):
        """
        Initialise le chercheur.

        Args:
            tree: kd-tree construit
            distance: Fonction de distance (euclidienne par défaut)
            n_jobs: Nombre de threads pour les recherches par lots
            verbose: Afficher les messages de progression
        """
        self.tree = tree
        self.distance = distance or euclidean
        self.n_jobs = n_jobs
        self.verbose = verbose

        # Référence exhaustive, construite à la demande
        self._points = None
        self._reference = None

    def search(self, query, k: int = 1, radius: Optional[float] = None) -> List[Match]:
        return search(self.tree, query, k=k, radius=radius, distance=self.distance)

    def nearest(self, query, k: int = 1) -> List[Any]:
        return nearest(self.tree, query, k=k, distance=self.distance)

    def nearest_within(self, query, radius: float, k: int = 1) -> List[Any]:
        return nearest_within(self.tree, query, radius, k=k, distance=self.distance)

    def search_batch(
        self,
        queries: Sequence[Any],
        k: int = 1,
        radius: Optional[float] = None,
        n_jobs: Optional[int] = None
    ) -> List[List[Any]]:
        """
        Recherche les k plus proches voisins de plusieurs requêtes.

        Args:
            queries: Points requêtes (liste ou tableau numpy 2D)
            k: Nombre maximal de résultats par requête
            radius: Rayon de recherche (facultatif)
            n_jobs: Nombre de threads (sinon valeur du chercheur)

        Returns:
            List[List]: Pour chaque requête, les points triés par distance
        """
        if radius is not None and not radius > 0:
            raise InvalidRadius(radius)

        n_jobs = n_jobs if n_jobs is not None else self.n_jobs

        if radius is None:
            tasks = (delayed(self.nearest)(query, k) for query in queries)
        else:
            tasks = (delayed(self.nearest_within)(query, radius, k) for query in queries)

        # Threads: l'arbre est partagé en lecture seule
        return Parallel(n_jobs=n_jobs, prefer="threads")(tasks)

    def _get_reference(self) -> NearestNeighbors:
        if self._reference is None:
            self._points = list(self.tree)
            metric = _SKLEARN_METRICS.get(self.distance, self.distance)
            self._reference = NearestNeighbors(algorithm="brute", metric=metric)
            self._reference.fit(np.asarray(self._points, dtype=np.float64))
        return self._reference

    def brute_force(self, query, k: int = 1,
                    radius: Optional[float] = None) -> Tuple[List[Any], List[float]]:
        """
        Recherche exhaustive de référence (scikit-learn, algorithme brute).

        Args:
            query: Point requête
            k: Nombre maximal de résultats
            radius: Rayon de recherche (facultatif)

        Returns:
            Tuple[List, List[float]]: Points et distances triés par distance croissante
        """
        if radius is not None and not radius > 0:
            raise InvalidRadius(radius)
        if k == 0 or self.tree.is_empty():
            return [], []

        reference = self._get_reference()
        n_neighbors = min(k, len(self._points))
        distances, indices = reference.kneighbors(
            np.asarray([query], dtype=np.float64), n_neighbors=n_neighbors
        )
        distances = distances[0]
        indices = indices[0]

        if radius is not None and not math.isinf(radius):
            limit = radius_to_distance(radius, query, self.tree.dimension, self.distance)
            keep = distances < limit
            distances = distances[keep]
            indices = indices[keep]

        return [self._points[i] for i in indices], distances.tolist()

    def evaluate_search(self, queries: Sequence[Any], k: int = 10,
                        radius: Optional[float] = None) -> Dict[str, Any]:
        """
        Compare la recherche dans l'arbre à la recherche exhaustive.

        Le recall d'une requête est la proportion des k voisins de référence
        retrouvés, à distance égale près (les ex aequo sont interchangeables).

        Args:
            queries: Points requêtes
            k: Nombre de voisins recherchés
            radius: Rayon de recherche (facultatif)

        Returns:
            Dict[str, Any]: Recall moyen, temps moyens et accélération
        """
        recalls = []
        tree_times = []
        naive_times = []
        result_counts = []

        for query in tqdm(queries, desc="Évaluation", disable=not self.verbose):
            start = time.time()
            matches = self.search(query, k=k, radius=radius)
            tree_times.append(time.time() - start)

            start = time.time()
            _, reference_distances = self.brute_force(query, k=k, radius=radius)
            naive_times.append(time.time() - start)

            result_counts.append(len(matches))
            if not reference_distances:
                recalls.append(1.0 if not matches else 0.0)
                continue

            threshold = reference_distances[-1]
            tolerance = 1e-6 * max(1.0, abs(threshold))
            found = sum(1 for _, dist in matches if dist <= threshold + tolerance)
            recalls.append(min(found, len(reference_distances)) / len(reference_distances))

        if not recalls:
            return {"queries": 0}

        avg_tree_time = float(np.mean(tree_times))
        avg_naive_time = float(np.mean(naive_times))
        results = {
            "queries": len(recalls),
            "avg_recall": float(np.mean(recalls)),
            "avg_results": float(np.mean(result_counts)),
            "avg_tree_time": avg_tree_time,
            "avg_naive_time": avg_naive_time,
            "speedup": avg_naive_time / avg_tree_time if avg_tree_time > 0 else float("inf"),
        }

        if self.verbose:
            print(f"✓ Évaluation terminée sur {results['queries']} requêtes")
            print(f"  → Recall: {results['avg_recall'] * 100:.2f}%")
            print(f"  → Temps moyen (arbre): {avg_tree_time * 1000:.3f} ms")
            print(f"  → Temps moyen (naïf): {avg_naive_time * 1000:.3f} ms")

        return results
