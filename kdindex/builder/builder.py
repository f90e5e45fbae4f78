"""
Constructeur de kd-trees.
Partition récursive par médiane sur des axes alternés.
"""

import time
from bisect import bisect_right
from typing import Any, Dict, Iterable, List, Optional, Tuple

from kdindex.core.errors import DimensionMismatch
from kdindex.core.point import Point, dimension_of
from kdindex.core.tree import KdNode, KdTree
from kdindex.io.reader import read_points
from kdindex.utils.config import ConfigManager


def _check_dimensions(points: List[Point]) -> int:
    """Vérifie que tous les points ont la même dimension et la retourne."""
    expected = dimension_of(points[0])
    if expected == 0:
        raise ValueError("Les points doivent avoir au moins une coordonnée")
    for point in points:
        actual = dimension_of(point)
        if actual != expected:
            raise DimensionMismatch(expected, actual)
    return expected


def split_points(points: List[Point], depth: int) -> Tuple[KdNode, List[Point], List[Point]]:
    """
    Crée le nœud de profondeur ``depth`` et partage les points restants.

    Args:
        points: Points du sous-arbre (non vide)
        depth: Profondeur du nœud à créer

    Returns:
        Tuple: Nœud créé, points du sous-arbre gauche, points du sous-arbre droit
    """
    axis = depth % dimension_of(points[-1])

    # Tri stable sur l'axe courant; la médiane positionnelle devient le nœud
    points = sorted(points, key=lambda point: point[axis])
    keys = [point[axis] for point in points]
    # Les ex aequo de la médiane restent à gauche: à droite, coordonnée strictement supérieure
    median = bisect_right(keys, keys[len(points) // 2]) - 1
    value = points[median]

    if dimension_of(points[0]) != dimension_of(value):
        raise DimensionMismatch(dimension_of(value), dimension_of(points[0]))
    if dimension_of(points[-1]) != dimension_of(value):
        raise DimensionMismatch(dimension_of(value), dimension_of(points[-1]))

    node = KdNode(value, level=depth, axis=axis)
    return node, points[:median], points[median + 1:]


def build_node(points: List[Point], depth: int = 0) -> KdNode:
    """
    Construit le sous-arbre d'une liste non vide de points.

    Une pile explicite remplace la récursion: des doublons en grand nombre
    forment une chaîne aussi profonde que la liste est longue.

    Args:
        points: Points du sous-arbre (non vide)
        depth: Profondeur de la racine à créer

    Returns:
        KdNode: Racine du sous-arbre
    """
    root = None
    stack = [(points, depth, None, None)]

    while stack:
        points, depth, parent, side = stack.pop()
        node, left_points, right_points = split_points(points, depth)

        if parent is None:
            root = node
        else:
            setattr(parent, side, node)

        # Gauche dépilée en premier
        if right_points:
            stack.append((right_points, depth + 1, node, "right"))
        if left_points:
            stack.append((left_points, depth + 1, node, "left"))

    return root


def build_tree(points: Iterable[Point], verbose: bool = False) -> KdTree:
    """
    Construit un kd-tree à partir d'une collection de points.

    Les points sont conservés tels quels (mêmes objets) et restitués par la
    recherche. Les doublons ne sont pas éliminés.

    Args:
        points: Points de même dimension (liste, tableau numpy 2D, itérable...)
        verbose: Afficher les messages de progression

    Returns:
        KdTree: Arbre construit (sans racine si ``points`` est vide)

    Raises:
        DimensionMismatch: si deux points n'ont pas la même dimension
    """
    points = list(points)
    if not points:
        if verbose:
            print("ℹ️ Aucun point fourni: arbre vide")
        return KdTree()

    dimension = _check_dimensions(points)

    start_time = time.time()
    if verbose:
        print(f"⏳ Construction du kd-tree ({len(points):,} points, dim {dimension})...")

    root = build_node(points, 0)
    tree = KdTree(root, dimension=dimension, size=len(points))

    if verbose:
        elapsed = time.time() - start_time
        print(f"✓ kd-tree construit [terminé en {elapsed:.2f}s]")
        print(f"  → Hauteur: {tree.get_height()}, feuilles: {tree.get_leaf_count():,}")

    return tree


def build_from_file(
    file_path: str,
    config: Optional[Dict[str, Any]] = None,
    verbose: Optional[bool] = None
) -> KdTree:
    """
    Charge des points depuis un fichier et construit le kd-tree.

    Args:
        file_path: Fichier de points (.bin, .npy, .txt ou .csv)
        config: Configuration personnalisée (facultatif, sinon utilise config.yaml)
        verbose: Afficher les messages de progression (sinon pris dans la configuration)

    Returns:
        KdTree: Arbre construit
    """
    if config is None:
        build_config = ConfigManager().get_section("build_tree")
    else:
        build_config = config.get("build_tree", {})

    verbose = verbose if verbose is not None else build_config.get("verbose", True)

    reader = read_points(file_path=file_path, verbose=verbose)
    return build_tree(reader.points, verbose=verbose)
