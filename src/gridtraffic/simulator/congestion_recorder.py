"""
Registro histórico de ocupación por tramo.

En cada paso se agrega una muestra (tiempo, vehículos) para todos los
tramos de la red, estén ocupados o no. Cada historial guarda como máximo
HistoryConfig.MAX_SAMPLES muestras y descarta primero las más viejas.
"""

from collections import deque
from typing import Deque, Dict, List, Mapping, Optional, Tuple, Union

import pandas as pd

from ..utils.config import HistoryConfig
from .traffic_network import EdgeKey, TrafficNetwork, format_edge_key, parse_edge_key

Sample = Tuple[float, int]


class CongestionRecorder:
    """
    Historial acotado de ocupación para cada tramo dirigido.

    Lo consumen únicamente colaboradores externos (gráficos, reportes).
    """

    def __init__(self, network: TrafficNetwork, max_samples: int = HistoryConfig.MAX_SAMPLES):
        """
        Args:
            network: Red cuyos tramos se registran
            max_samples: Muestras máximas por tramo

        Raises:
            ValueError: Si max_samples no es positivo
        """
        if max_samples < 1:
            raise ValueError(f"max_samples debe ser >= 1: {max_samples}")

        self.network = network
        self.max_samples = max_samples
        self.histories: Dict[EdgeKey, Deque[Sample]] = {}
        self.samples_recorded = 0

    def record(self, sim_time: float, occupancy: Mapping[EdgeKey, int]):
        """
        Agrega una muestra a cada tramo de la red.

        Args:
            sim_time: Tiempo de simulación de la muestra
            occupancy: Vehículos por tramo (los ausentes cuentan 0)
        """
        for edge_key in self.network.segments:
            history = self.histories.get(edge_key)
            if history is None:
                history = deque(maxlen=self.max_samples)
                self.histories[edge_key] = history
            history.append((sim_time, occupancy.get(edge_key, 0)))
        self.samples_recorded += 1

    def get_history(self, edge_key: Union[EdgeKey, str]) -> List[Sample]:
        """
        Retorna las muestras de un tramo, de la más vieja a la más nueva.

        Args:
            edge_key: (from_id, to_id) o "from-to"

        Returns:
            Lista de (tiempo, vehículos); vacía si aún no hay muestras

        Raises:
            ValueError: Si la clave no corresponde a un tramo de la red
        """
        key = parse_edge_key(edge_key)
        if key not in self.network.segments:
            raise ValueError(f"Tramo desconocido: {format_edge_key(key)}")
        return list(self.histories.get(key, ()))

    def to_dataframe(self, edge_key: Optional[Union[EdgeKey, str]] = None) -> pd.DataFrame:
        """
        Exporta el historial en formato largo.

        Args:
            edge_key: Tramo a exportar (None = todos)

        Returns:
            pd.DataFrame con columnas edge, from_id, to_id, time, vehicles
        """
        if edge_key is None:
            keys = [key for key in self.network.segments if key in self.histories]
        else:
            keys = [parse_edge_key(edge_key)]

        rows = []
        for key in keys:
            for sim_time, count in self.get_history(key):
                rows.append({
                    'edge': format_edge_key(key),
                    'from_id': key[0],
                    'to_id': key[1],
                    'time': sim_time,
                    'vehicles': count,
                })

        return pd.DataFrame(rows, columns=['edge', 'from_id', 'to_id', 'time', 'vehicles'])

    def reset(self):
        """Borra todos los historiales."""
        self.histories.clear()
        self.samples_recorded = 0
