"""
Module de lecture de points pour kdindex.
Charge un ensemble de points depuis un fichier binaire, numpy ou texte.
"""

import os
import struct
import time
from typing import Optional

import numpy as np

HEADER_FORMAT = "<QQ"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 2 entiers 64 bits


class PointReader:
    """
    Classe pour lire des points depuis un fichier.

    Formats supportés:
    - ``.bin``: entête (n, d: uint64 little-endian) suivi des données en float32
    - ``.npy``: tableau numpy 2D
    - ``.txt`` / ``.csv``: une ligne par point, coordonnées séparées par des espaces ou des virgules
    """

    def __init__(self, file_path: str, verbose: bool = True):
        """
        Initialise le lecteur et charge les points.

        Args:
            file_path: Chemin vers le fichier de points
            verbose: Afficher les messages de progression
        """
        self.file_path = file_path
        self.verbose = verbose
        self.n = 0  # Nombre de points
        self.d = 0  # Dimension des points
        self.points = None

        self._load_points()

    def _load_points(self) -> None:
        """Charge les points selon l'extension du fichier."""
        start_time = time.time()
        if self.verbose:
            print(f"⏳ Chargement des points depuis {self.file_path}...")

        extension = os.path.splitext(self.file_path)[1].lower()
        if extension == ".bin":
            points = self._read_bin()
        elif extension == ".npy":
            points = np.load(self.file_path)
        elif extension in (".txt", ".csv"):
            delimiter = "," if extension == ".csv" else None
            points = np.loadtxt(self.file_path, delimiter=delimiter, dtype=np.float64, ndmin=2)
        else:
            raise ValueError(f"Format de fichier non supporté: {extension} (attendu .bin, .npy, .txt ou .csv)")

        if points.ndim != 2:
            raise ValueError(f"Les points doivent former un tableau 2D (reçu {points.ndim}D)")

        self.points = points
        self.n, self.d = points.shape

        if self.verbose:
            elapsed = time.time() - start_time
            print(f"✓ {self.n:,} points (dim {self.d}) chargés [terminé en {elapsed:.2f}s]")

    def _read_bin(self) -> np.ndarray:
        with open(self.file_path, "rb") as f:
            header = f.read(HEADER_SIZE)
            if len(header) < HEADER_SIZE:
                raise ValueError(f"Fichier binaire tronqué: {self.file_path}")
            n, d = struct.unpack(HEADER_FORMAT, header)
            if self.verbose:
                print(f"  → Format détecté: {n:,} points de dimension {d}")

            expected = n * d * 4  # float32 = 4 octets
            buffer = f.read(expected)
            if len(buffer) < expected:
                raise ValueError(f"Fichier binaire tronqué: {len(buffer)} octets lus, {expected} attendus")

        return np.frombuffer(buffer, dtype=np.float32).reshape(n, d)

    def __getitem__(self, index):
        return self.points[index]

    def __len__(self) -> int:
        """Retourne le nombre de points."""
        return self.n


def read_points(file_path: Optional[str] = None, points: Optional[np.ndarray] = None,
                verbose: bool = True) -> PointReader:
    """
    Fonction utilitaire pour lire des points depuis un fichier ou un tableau numpy.

    Args:
        file_path: Chemin vers le fichier de points (None si points est fourni)
        points: Tableau numpy 2D de points à utiliser directement (None si file_path est fourni)
        verbose: Afficher les messages de progression

    Returns:
        PointReader: Instance de lecteur de points
    """
    if points is not None and file_path is not None:
        raise ValueError("Fournir soit file_path soit points, pas les deux")

    if points is not None:
        points = np.asarray(points)
        if points.ndim != 2:
            raise ValueError(f"Les points doivent former un tableau 2D (reçu {points.ndim}D)")
        reader = PointReader.__new__(PointReader)
        reader.file_path = None
        reader.verbose = verbose
        reader.points = points
        reader.n, reader.d = points.shape
        return reader
    elif file_path is not None:
        return PointReader(file_path, verbose=verbose)
    else:
        raise ValueError("Soit file_path soit points doit être fourni")
