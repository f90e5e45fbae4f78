"""
Module de structures d'arbre pour kdindex.
Définit le nœud et l'arbre kd statique (construit une fois, interrogé ensuite).
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from kdindex.core.norms import DistanceFn


class KdNode:
    """
    Nœud d'un kd-tree.
    Stocke un point et partitionne ses descendants selon l'axe ``level % dimension``:
    à gauche les coordonnées <= à celle du point, à droite les coordonnées >.
    """

    def __init__(self, value, level: int = 0, axis: int = 0,
                 left: Optional["KdNode"] = None, right: Optional["KdNode"] = None):
        """
        Initialise un nœud.

        Args:
            value: Point stocké dans ce nœud
            level: Profondeur du nœud (0 = racine)
            axis: Axe de partition du nœud
            left: Sous-arbre gauche (optionnel)
            right: Sous-arbre droit (optionnel)
        """
        self.value = value
        self.level = level
        self.axis = axis
        self.left = left
        self.right = right

    def is_leaf(self) -> bool:
        """Vérifie si ce nœud est une feuille (aucun enfant)."""
        return self.left is None and self.right is None

    def children(self) -> List["KdNode"]:
        """Retourne les enfants présents, gauche d'abord."""
        return [child for child in (self.left, self.right) if child is not None]

    def walk(self) -> Iterator[Tuple["KdNode", int]]:
        """
        Parcours préfixe du sous-arbre, gauche d'abord.

        Les parcours utilisent une pile explicite: un arbre chargé de doublons
        peut dépasser la limite de récursion de Python.

        Yields:
            Tuple[KdNode, int]: Nœud et profondeur relative à ce nœud
        """
        stack = [(self, 0)]
        while stack:
            node, depth = stack.pop()
            yield node, depth
            if node.right is not None:
                stack.append((node.right, depth + 1))
            if node.left is not None:
                stack.append((node.left, depth + 1))

    def get_size(self) -> int:
        """Nombre de nœuds du sous-arbre enraciné ici."""
        return sum(1 for _ in self.walk())

    def __iter__(self) -> Iterator[Any]:
        # Parcours infixe: gauche, nœud, droite
        stack = []
        node = self
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.value
            node = node.right

    def __str__(self) -> str:
        if self.is_leaf():
            return f"Leaf(level={self.level}, value={list(self.value)})"
        return f"Node(level={self.level}, axis={self.axis}, value={list(self.value)})"


class KdTree:
    """
    Classe principale pour l'index kd-tree.
    Possède l'ensemble des nœuds; aucun nœud n'est partagé ni modifié après construction.
    Utiliser ``kdindex.builder.builder.build_tree`` pour la construire.
    """

    def __init__(self, root: Optional[KdNode] = None, dimension: int = 0, size: int = 0):
        """
        Initialise un kd-tree.

        Args:
            root: Nœud racine (None pour un arbre vide)
            dimension: Dimension commune de tous les points
            size: Nombre de points stockés
        """
        self.root = root
        self.dimension = dimension
        self.size = size

    def is_empty(self) -> bool:
        return self.root is None

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[Any]:
        """Itère sur les points stockés (ordre infixe)."""
        if self.root is not None:
            yield from self.root

    def get_height(self) -> int:
        """
        Calcule la hauteur de l'arbre (nombre de niveaux).

        Returns:
            int: Hauteur de l'arbre, 0 pour un arbre vide
        """
        if not self.root:
            return 0
        return 1 + max(depth for _, depth in self.root.walk())

    def get_leaf_count(self) -> int:
        """Compte le nombre de feuilles dans l'arbre."""
        if not self.root:
            return 0
        return sum(1 for node, _ in self.root.walk() if node.is_leaf())

    def get_node_count(self) -> int:
        """Compte le nombre total de nœuds dans l'arbre."""
        if not self.root:
            return 0
        return self.root.get_size()

    def get_statistics(self) -> Dict[str, Any]:
        """
        Calcule diverses statistiques sur l'arbre.

        Returns:
            Dict: Dictionnaire de statistiques
        """
        if not self.root:
            return {"error": "Arbre vide"}

        stats = {
            "node_count": 0,
            "leaf_count": 0,
            "dimension": self.dimension,
            "max_depth": 0,
            "min_leaf_depth": float("inf"),
            "avg_leaf_depth": 0,
            "leaf_depths": [],
            "single_child_nodes": 0,
            "axis_counts": {},
        }

        for node, _ in self.root.walk():
            stats["node_count"] += 1
            stats["max_depth"] = max(stats["max_depth"], node.level)

            if node.is_leaf():
                stats["leaf_count"] += 1
                stats["min_leaf_depth"] = min(stats["min_leaf_depth"], node.level)
                stats["leaf_depths"].append(node.level)
                continue

            stats["axis_counts"][node.axis] = stats["axis_counts"].get(node.axis, 0) + 1
            if len(node.children()) == 1:
                stats["single_child_nodes"] += 1

        if stats["leaf_count"] > 0:
            stats["avg_leaf_depth"] = sum(stats["leaf_depths"]) / stats["leaf_count"]

        return stats

    def nearest_to(self, query, k: int = 1, distance: "DistanceFn" = None) -> List[Any]:
        """
        Trouve les k points les plus proches de ``query``.
        Façade sur ``kdindex.search.searcher.nearest``.

        Args:
            query: Point requête (même dimension que l'arbre)
            k: Nombre maximal de points retournés
            distance: Fonction de distance (euclidienne par défaut)

        Returns:
            List: Points triés du plus proche au plus lointain
        """
        # Import local pour éviter les dépendances circulaires
        from kdindex.search.searcher import nearest
        return nearest(self, query, k=k, distance=distance)

    def nearest_within(self, query, radius: float, k: int = 1,
                       distance: "DistanceFn" = None) -> List[Any]:
        """
        Trouve les k points les plus proches de ``query`` à une distance < ``radius``.
        Façade sur ``kdindex.search.searcher.nearest_within``.

        Args:
            query: Point requête (même dimension que l'arbre)
            radius: Rayon de recherche, strictement positif
            k: Nombre maximal de points retournés
            distance: Fonction de distance (euclidienne par défaut)

        Returns:
            List: Points triés du plus proche au plus lointain
        """
        from kdindex.search.searcher import nearest_within
        return nearest_within(self, query, radius, k=k, distance=distance)

    def __str__(self) -> str:
        """Représentation sous forme de chaîne pour le débogage."""
        if not self.root:
            return "Empty Tree"

        stats = self.get_statistics()
        return (f"KdTree(points={self.size}, "
                f"dim={self.dimension}, "
                f"leaves={stats['leaf_count']}, "
                f"height={stats['max_depth'] + 1})")
