# kdindex - Index kd-tree statique pour la recherche exacte des k plus proches voisins

# Import main components for direct API access
from kdindex.core.errors import DimensionMismatch, InvalidRadius
from kdindex.core.norms import euclidean, manhattan, chebyshev, minkowski
from kdindex.core.tree import KdNode, KdTree
from kdindex.builder.builder import build_tree
from kdindex.search.searcher import Searcher, search, nearest, nearest_within

__version__ = "1.0.0"
