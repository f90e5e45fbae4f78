"""
Module pour les tests d'exactitude et de performance.
Compare la recherche dans le kd-tree à une recherche exhaustive.
"""

import argparse
import datetime
import time
import traceback

import numpy as np

from kdindex.builder.builder import build_from_file
from kdindex.core.norms import get_norm
from kdindex.search.searcher import Searcher
from kdindex.utils.audit import check_tree, find_duplicate_points
from kdindex.utils.config import ConfigManager


def format_time(seconds: float) -> str:
    """Formate le temps en heures, minutes, secondes."""
    return str(datetime.timedelta(seconds=int(seconds)))


def evaluate_command(args: argparse.Namespace) -> int:
    """
    Commande pour évaluer la recherche sur des requêtes aléatoires.

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
    n_queries = args.queries if args.queries is not None else search_config["queries"]
    n_jobs = args.n_jobs if args.n_jobs is not None else search_config["n_jobs"]
    seed = args.seed if args.seed is not None else search_config["seed"]

    total_start_time = time.time()

    try:
        print(f"🔍 Test du kd-tree...")
        print(f"  - Points: {points_file}")
        print(f"  - K (nombre de voisins): {k}")
        print(f"  - Rayon: {radius if radius is not None else 'non borné'}")
        print(f"  - Norme: {norm}")
        print(f"  - Requêtes de test: {n_queries}")

        distance = get_norm(norm)
        tree = build_from_file(points_file, config=config_manager.config)
        print(f"✓ {tree}")

        if config_manager.get("general", "debug", False):
            problems = check_tree(tree, verbose=True)
            duplicates = find_duplicate_points(tree)
            print(f"✓ Audit de l'arbre: {len(problems)} violation(s), {len(duplicates)} point(s) en double")

        if tree.is_empty():
            print("⚠️ Aucun point à indexer, rien à évaluer")
            return 0

        # Requêtes tirées dans la boîte englobante des points
        points = np.asarray(list(tree), dtype=np.float64)
        rng = np.random.default_rng(seed)
        queries = rng.uniform(points.min(axis=0), points.max(axis=0), size=(n_queries, tree.dimension))
        print(f"✓ {n_queries} requêtes générées")

        searcher = Searcher(tree, distance=distance, n_jobs=n_jobs, verbose=True)

        print(f"⏳ Recherche par lots (n_jobs={n_jobs})...")
        batch_start = time.time()
        searcher.search_batch(queries, k=k, radius=radius)
        batch_time = time.time() - batch_start
        print(f"✓ {n_queries} requêtes traitées en {batch_time:.2f}s")

        print(f"⏳ Évaluation contre la recherche exhaustive...")
        results = searcher.evaluate_search(queries, k=k, radius=radius)

        print(f"\n✓ Évaluation terminée en {format_time(time.time() - total_start_time)}")
        print(f"  → Recall: {results['avg_recall'] * 100:.2f}%")
        print(f"  → Résultats moyens par requête: {results['avg_results']:.1f}")
        print(f"  → Accélération: {results['speedup']:.2f}x par rapport à la recherche exhaustive")

        if results["avg_recall"] < 1.0:
            print("⚠️ La recherche n'est pas exacte: vérifier que la norme respecte le contrat de distance")

    except Exception as e:
        print(f"\n❌ Erreur: {str(e)}")
        traceback.print_exc()
        return 1

    return 0
