"""
Fonctions de distance fournies avec kdindex.

Toute fonction ``distance(a, b) -> float`` peut être passée à la recherche si
elle est symétrique, positive, nulle uniquement pour des points identiques, et
homogène: la distance entre l'origine et le point (r, 0, ..., 0) doit valoir
le "rayon r" dans les unités de la métrique. L'élagage suppose en outre que
la distance entre deux points est au moins l'écart sur un seul axe, ce que
vérifient toutes les normes Lp avec p >= 1 (mais pas la distance euclidienne
au carré).
"""

from typing import Callable, Dict

import numpy as np

DistanceFn = Callable[[object, object], float]


def _difference(a, b) -> np.ndarray:
    return np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)


def euclidean(a, b) -> float:
    """Distance euclidienne (norme L2)."""
    return float(np.linalg.norm(_difference(a, b)))


def manhattan(a, b) -> float:
    """Distance de Manhattan (norme L1)."""
    return float(np.abs(_difference(a, b)).sum())


def chebyshev(a, b) -> float:
    """Distance de Tchebychev (norme infinie)."""
    diff = _difference(a, b)
    if diff.size == 0:
        return 0.0
    return float(np.abs(diff).max())


def minkowski(p: float) -> DistanceFn:
    """
    Construit la distance de Minkowski d'ordre p.

    Args:
        p: Ordre de la norme (p >= 1)

    Returns:
        DistanceFn: Fonction de distance
    """
    if p < 1:
        raise ValueError(f"La distance de Minkowski exige p >= 1 (reçu {p})")

    def distance(a, b) -> float:
        return float(np.linalg.norm(_difference(a, b), ord=p))

    distance.__name__ = f"minkowski_{p:g}"
    return distance


NORMS: Dict[str, DistanceFn] = {
    "euclidean": euclidean,
    "l2": euclidean,
    "manhattan": manhattan,
    "l1": manhattan,
    "chebyshev": chebyshev,
    "linf": chebyshev,
}


def get_norm(name: str) -> DistanceFn:
    """
    Retrouve une fonction de distance par son nom.

    Accepte les noms de ``NORMS`` ainsi que ``minkowski:<p>`` (ex. ``minkowski:3``).
    """
    key = name.strip().lower()
    if key.startswith("minkowski:"):
        return minkowski(float(key.split(":", 1)[1]))
    if key not in NORMS:
        raise ValueError(f"Norme inconnue: {name} (disponibles: {', '.join(sorted(NORMS))}, minkowski:<p>)")
    return NORMS[key]
