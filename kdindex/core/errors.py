"""
Exceptions levées par l'index kd-tree.
"""


class DimensionMismatch(ValueError):
    """Des points (ou le point requête) n'ont pas tous la même dimension."""

    def __init__(self, expected: int, actual: int, message: str = None):
        self.expected = expected
        self.actual = actual
        if message is None:
            message = (f"Tous les points doivent avoir la même dimension "
                       f"(attendu {expected}, reçu {actual})")
        super().__init__(message)


class InvalidRadius(ValueError):
    """Le rayon d'une recherche bornée n'est pas strictement positif."""

    def __init__(self, radius):
        self.radius = radius
        super().__init__(f"Le rayon doit être strictement positif (reçu {radius})")
