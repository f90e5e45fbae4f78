"""
Module pour la recherche de voisins en ligne de commande.
"""

import argparse
import time
import traceback
from typing import List, Tuple

from kdindex.builder.builder import build_from_file
from kdindex.core.norms import get_norm
from kdindex.search.searcher import search
from kdindex.utils.audit import check_tree
from kdindex.utils.config import ConfigManager


def format_results(matches: List[Tuple], elapsed: float) -> str:
    """
    Formate les résultats de recherche pour l'affichage en terminal.

    Args:
        matches: Couples (point, distance) triés
        elapsed: Temps de recherche en secondes

    Returns:
        str: Résultats formatés
    """
    output = [f"\n🕒 Recherche: {elapsed * 1000:.3f} ms"]

    if not matches:
        output.append("\n📋 Aucun point trouvé")
        return "\n".join(output)

    output.append("\n📋 Résultats:")
    for i, (point, dist) in enumerate(matches, 1):
        coords = ", ".join(f"{float(c):g}" for c in point)
        output.append(f"  {i}. ({coords})  → distance {dist:.6g}")
    return "\n".join(output)


def query_command(args: argparse.Namespace) -> int:
    """
    Commande pour rechercher les voisins d'un point dans un fichier de points.

    Args:
        args: Arguments de ligne de commande

    Returns:
        int: Code de retour (0 pour succès, autre pour erreur)
    """
    config_manager = ConfigManager(args.config)
    search_config = config_manager.get_section("search")

    points_file = args.points_file or config_manager.get_file_path("default_points", "points.bin")
    k = args.k if args.k is not None else search_config["k"]
    radius = args.radius if args.radius is not None else search_config["radius"]
    norm = args.norm or search_config["norm"]

    try:
        print(f"🔍 Recherche des {k} plus proches voisins...")
        print(f"  - Points: {points_file}")
        print(f"  - Requête: {args.point}")
        print(f"  - Rayon: {radius if radius is not None else 'non borné'}")
        print(f"  - Norme: {norm}")

        distance = get_norm(norm)
        tree = build_from_file(points_file, config=config_manager.config)

        if config_manager.get("general", "debug", False):
            problems = check_tree(tree, verbose=True)
            print(f"✓ Audit de l'arbre: {len(problems)} violation(s)")

        start = time.time()
        matches = search(tree, args.point, k=k, radius=radius, distance=distance)
        elapsed = time.time() - start

        print(format_results(matches, elapsed))

    except Exception as e:
        print(f"\n❌ Erreur: {str(e)}")
        traceback.print_exc()
        return 1

    return 0
