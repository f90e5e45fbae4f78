"""
Vérification des invariants d'un kd-tree.

Outil de développement et de test: n'est jamais appelé par la construction
ni par la recherche, et ne modifie pas l'arbre.
"""

from typing import Any, Dict, List, Optional, Tuple

from kdindex.core.point import dimension_of
from kdindex.core.tree import KdNode, KdTree


def _subtree_values(node: Optional[KdNode]) -> List[Any]:
    return list(node) if node is not None else []


def _point_key(point) -> Tuple[float, ...]:
    return tuple(float(coord) for coord in point)


def check_tree(tree: KdTree, verbose: bool = False) -> List[str]:
    """
    Vérifie les invariants structurels de l'arbre.

    - l'axe d'un nœud de profondeur d vaut d % dimension
    - tout point du sous-arbre gauche a une coordonnée <= sur l'axe du nœud
    - tout point du sous-arbre droit a une coordonnée > sur l'axe du nœud
    - tous les points ont la dimension de l'arbre
    - le nombre de nœuds est égal au nombre de points déclaré

    Args:
        tree: Arbre à vérifier
        verbose: Afficher chaque violation

    Returns:
        List[str]: Description des violations (vide si l'arbre est cohérent)
    """
    problems = []

    if tree.root is None:
        if tree.size != 0:
            problems.append(f"Arbre sans racine mais size={tree.size}")
        return problems

    for node, depth in tree.root.walk():
        value = node.value
        if dimension_of(value) != tree.dimension:
            problems.append(f"Le point {list(value)} a la dimension {dimension_of(value)}, "
                            f"attendu {tree.dimension}")
            continue

        axis = depth % tree.dimension
        if node.level != depth or node.axis != axis:
            problems.append(f"Nœud {list(value)}: niveau/axe ({node.level}, {node.axis}), "
                            f"attendu ({depth}, {axis})")

        for point in _subtree_values(node.left):
            if dimension_of(point) == tree.dimension and point[axis] > value[axis]:
                problems.append(f"{list(point)} est à gauche de {list(value)} "
                                f"mais {point[axis]} > {value[axis]} (axe {axis})")

        for point in _subtree_values(node.right):
            if dimension_of(point) == tree.dimension and point[axis] <= value[axis]:
                problems.append(f"{list(point)} est à droite de {list(value)} "
                                f"mais {point[axis]} <= {value[axis]} (axe {axis})")

    node_count = tree.get_node_count()
    if node_count != tree.size:
        problems.append(f"{node_count} nœuds pour {tree.size} points déclarés")

    if verbose:
        for problem in problems:
            print(f"⚠️ {problem}")

    return problems


def find_duplicate_points(tree: KdTree) -> Dict[Tuple[float, ...], int]:
    """
    Recherche les points stockés plusieurs fois.

    Les doublons sont autorisés: ils sont restitués comme des résultats
    distincts. Ce diagnostic sert uniquement à les signaler.

    Returns:
        Dict: Coordonnées du point -> nombre d'occurrences (> 1)
    """
    counts = {}
    for point in tree:
        key = _point_key(point)
        counts[key] = counts.get(key, 0) + 1
    return {key: count for key, count in counts.items() if count > 1}


def assert_valid_tree(tree: KdTree) -> None:
    """Lève ``AssertionError`` si l'arbre viole un invariant structurel."""
    problems = check_tree(tree)
    assert not problems, "Invariants violés:\n" + "\n".join(problems)
