"""
Fuentes de números aleatorios para la simulación.

Todo el azar del simulador (límites de velocidad, duración de fases,
generación de vehículos) pasa por una fuente con un único método
random() que retorna un float uniforme en [0, 1). Así los tests pueden
sustituirla por una secuencia fija y reproducir exactamente una corrida.
"""

from typing import Iterable, Optional

import numpy as np


class RandomSource:
    """Interfaz mínima de una fuente aleatoria."""

    def random(self) -> float:
        """Retorna un valor uniforme en [0, 1)."""
        raise NotImplementedError


class NumpyRandomSource(RandomSource):
    """
    Fuente basada en numpy.random.Generator.

    Con la misma semilla, dos instancias producen la misma secuencia.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Semilla para reproducibilidad (None = entropía del sistema)
        """
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def random(self) -> float:
        return float(self._rng.random())

    def __repr__(self) -> str:
        return f"NumpyRandomSource(seed={self.seed})"


class SequenceRandomSource(RandomSource):
    """
    Fuente determinística que recorre cíclicamente una lista de valores.

    Pensada para tests: cada llamada a random() retorna el siguiente valor.
    """

    def __init__(self, values: Iterable[float]):
        """
        Args:
            values: Valores a retornar, cada uno en [0, 1)

        Raises:
            ValueError: Si la secuencia está vacía o tiene valores fuera de rango
        """
        self.values = [float(v) for v in values]
        if not self.values:
            raise ValueError("La secuencia de valores no puede estar vacía")
        for value in self.values:
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Valor fuera de [0, 1): {value}")
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value

    def __repr__(self) -> str:
        return f"SequenceRandomSource(values={self.values}, calls={self.calls})"
