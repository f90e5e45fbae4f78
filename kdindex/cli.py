"""
Interface en ligne de commande pour kdindex.
Fournit des commandes pour générer des points, interroger un index
et évaluer l'exactitude et les performances de la recherche.
"""

import sys
import argparse

from kdindex import __version__
from kdindex.utils.config import DEFAULT_CONFIG_PATH
from kdindex.utils.cli_generate import generate_command
from kdindex.utils.cli_query import query_command
from kdindex.utils.cli_evaluate import evaluate_command


def build_parser() -> argparse.ArgumentParser:
    """
    Construit le parseur d'arguments.

    Les options laissées à None sont lues dans la configuration par chaque commande.
    """
    parser = argparse.ArgumentParser(
        description="kdindex - Index kd-tree pour la recherche exacte des k plus proches voisins",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help="Chemin vers le fichier de configuration")
    parser.add_argument("--version", action="version", version=f"kdindex v{__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commandes disponibles")

    # Commande generate
    generate_parser = subparsers.add_parser("generate", help="Générer un fichier de points aléatoires")
    generate_parser.add_argument("points_file", nargs="?", default=None,
                                 help="Fichier de sortie (.bin ou .npy)")
    generate_parser.add_argument("--n_points", type=int, default=None,
                                 help="Nombre de points")
    generate_parser.add_argument("--dims", type=int, default=None,
                                 help="Dimension des points")
    generate_parser.add_argument("--low", type=float, default=None,
                                 help="Borne inférieure des coordonnées")
    generate_parser.add_argument("--high", type=float, default=None,
                                 help="Borne supérieure des coordonnées")
    generate_parser.add_argument("--seed", type=int, default=None,
                                 help="Graine aléatoire")
    generate_parser.set_defaults(func=generate_command)

    # Commande query
    query_parser = subparsers.add_parser("query", help="Rechercher les voisins d'un point")
    query_parser.add_argument("points_file", nargs="?", default=None,
                              help="Fichier de points à indexer")
    query_parser.add_argument("--point", type=float, nargs="+", required=True,
                              help="Coordonnées du point requête")
    query_parser.add_argument("--k", type=int, default=None,
                              help="Nombre de voisins à retourner")
    query_parser.add_argument("--radius", type=float, default=None,
                              help="Rayon de recherche (non borné si absent)")
    query_parser.add_argument("--norm", default=None,
                              help="Norme: euclidean, manhattan, chebyshev ou minkowski:<p>")
    query_parser.set_defaults(func=query_command)

    # Commande test
    test_parser = subparsers.add_parser("test", help="Comparer la recherche à la recherche exhaustive")
    test_parser.add_argument("points_file", nargs="?", default=None,
                             help="Fichier de points à indexer")
    test_parser.add_argument("--k", type=int, default=None,
                             help="Nombre de voisins à retourner")
    test_parser.add_argument("--radius", type=float, default=None,
                             help="Rayon de recherche (non borné si absent)")
    test_parser.add_argument("--norm", default=None,
                             help="Norme: euclidean, manhattan, chebyshev ou minkowski:<p>")
    test_parser.add_argument("--queries", type=int, default=None,
                             help="Nombre de requêtes aléatoires à effectuer")
    test_parser.add_argument("--n_jobs", type=int, default=None,
                             help="Nombre de threads pour la recherche par lots")
    test_parser.add_argument("--seed", type=int, default=None,
                             help="Graine aléatoire pour le choix des requêtes")
    test_parser.set_defaults(func=evaluate_command)

    return parser


def main(argv=None) -> int:
    """
    Point d'entrée principal pour l'interface en ligne de commande.

    Returns:
        int: Code de retour (0 pour succès, autre pour erreur)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if hasattr(args, "func"):
        return args.func(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
