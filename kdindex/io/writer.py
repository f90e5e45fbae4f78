"""
Module d'écriture de points pour kdindex.
"""

import os
import struct
import time

import numpy as np

from kdindex.io.reader import HEADER_FORMAT


def write_bin(points: np.ndarray, file_path: str, verbose: bool = True) -> None:
    """
    Écrit des points dans un fichier binaire.
    Format: header (n, d: uint64) suivi des données en float32.

    Args:
        points: Tableau numpy contenant les points (shape: [n, d])
        file_path: Chemin du fichier de sortie
        verbose: Afficher les messages de progression
    """
    points = np.asarray(points)
    if points.ndim != 2:
        raise ValueError(f"Les points doivent former un tableau 2D (reçu {points.ndim}D)")

    n, d = points.shape
    start_time = time.time()
    if verbose:
        print(f"⏳ Écriture de {n:,} points (dim {d}) vers {file_path}...")

    # Créer le répertoire si nécessaire
    os.makedirs(os.path.dirname(os.path.abspath(file_path)), exist_ok=True)

    with open(file_path, "wb") as f:
        f.write(struct.pack(HEADER_FORMAT, n, d))
        f.write(points.astype(np.float32).tobytes())

    if verbose:
        elapsed = time.time() - start_time
        print(f"✓ {n:,} points (dim {d}) écrits dans {file_path} [terminé en {elapsed:.2f}s]")


def write_points(points: np.ndarray, file_path: str, verbose: bool = True) -> None:
    """
    Fonction utilitaire pour écrire des points dans un fichier.
    Le format est déduit de l'extension: ``.npy`` via numpy, sinon binaire.

    Args:
        points: Tableau numpy contenant les points (shape: [n, d])
        file_path: Chemin du fichier de sortie
        verbose: Afficher les messages de progression
    """
    if file_path.lower().endswith(".npy"):
        os.makedirs(os.path.dirname(os.path.abspath(file_path)), exist_ok=True)
        np.save(file_path, np.asarray(points))
        if verbose:
            print(f"✓ Points écrits dans {file_path}")
        return
    write_bin(points, file_path, verbose=verbose)
