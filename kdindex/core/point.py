"""
Contrat minimal des points stockés dans l'index.

Un point est n'importe quelle séquence indexable de coordonnées numériques:
liste, tuple, namedtuple, ligne d'un tableau numpy, ou classe utilisateur
exposant ``__len__`` et ``__getitem__`` (et ``__setitem__`` si elle ne se
construit pas depuis une séquence de coordonnées).
"""

import copy
from typing import Any, Protocol, Sequence

import numpy as np


class Point(Protocol):
    """Protocole structurel d'un point: dimension fixe et accès par indice."""

    def __len__(self) -> int:
        ...

    def __getitem__(self, index: int) -> Any:
        ...


def dimension_of(point: Point) -> int:
    """Retourne la dimension (nombre de coordonnées) d'un point."""
    return len(point)


def make_point(like: Point, coords: Sequence[float]) -> Point:
    """
    Construit un point du même type que ``like`` à partir de coordonnées.

    Utilisé pour exprimer l'origine et le point de surface de la conversion
    rayon -> distance dans la représentation de point de l'appelant, afin que
    la fonction de distance fournie reçoive des objets qu'elle sait traiter.

    Si le type ne se construit pas depuis une séquence, ``like`` est copié
    puis chaque coordonnée est écrite par indice; ``like`` n'est pas modifié.

    Args:
        like: Point modèle (typiquement le point requête)
        coords: Coordonnées du nouveau point

    Returns:
        Un point de même type que ``like``
    """
    if isinstance(like, np.ndarray):
        # Toujours en flottant: un tableau d'entiers tronquerait le rayon
        return np.asarray(coords, dtype=np.float64)
    if isinstance(like, tuple) and hasattr(like, "_make"):
        # namedtuple
        return like._make(coords)

    try:
        return type(like)(list(coords))
    except TypeError:
        point = copy.deepcopy(like)
        for index, coord in enumerate(coords):
            point[index] = coord
        return point
