"""
Module pour la génération de jeux de points aléatoires.
"""

import argparse
import traceback

import numpy as np

from kdindex.io.writer import write_points
from kdindex.utils.config import ConfigManager


def generate_command(args: argparse.Namespace) -> int:
    """
    Commande pour générer un fichier de points uniformément répartis.

    Args:
        args: Arguments de ligne de commande

    Returns:
        int: Code de retour (0 pour succès, autre pour erreur)
    """
    config_manager = ConfigManager(args.config)
    generate_config = config_manager.get_section("generate")
    search_config = config_manager.get_section("search")

    points_file = args.points_file or config_manager.get_file_path("default_points", "points.bin")
    n_points = args.n_points if args.n_points is not None else generate_config["n_points"]
    dims = args.dims if args.dims is not None else generate_config["dims"]
    low = args.low if args.low is not None else generate_config["low"]
    high = args.high if args.high is not None else generate_config["high"]
    seed = args.seed if args.seed is not None else search_config["seed"]

    try:
        print(f"🎲 Génération de points aléatoires...")
        print(f"  - Sortie: {points_file}")
        print(f"  - Points: {n_points:,}")
        print(f"  - Dimension: {dims}")
        print(f"  - Intervalle: [{low}, {high})")

        if n_points < 0 or dims < 1:
            raise ValueError("n_points doit être >= 0 et dims >= 1")

        rng = np.random.default_rng(seed)
        points = rng.uniform(low, high, size=(n_points, dims))
        write_points(points, points_file)

    except Exception as e:
        print(f"\n❌ Erreur: {str(e)}")
        traceback.print_exc()
        return 1

    return 0
