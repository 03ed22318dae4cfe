"""
Sistema de métricas y análisis de resultados.

Este módulo proporciona funciones para resumir la ocupación registrada
por tramo y los viajes completados en una simulación.
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd


class MetricsCalculator:
    """
    Calculadora de métricas de evaluación para simulaciones de tráfico.

    Proporciona métodos estáticos; no guarda estado.
    """

    @staticmethod
    def average_occupancy(history: Sequence[Tuple[float, int]]) -> float:
        """
        Ocupación promedio de un historial de muestras (tiempo, vehículos).

        Returns:
            float: Vehículos promedio en el tramo (0 si no hay muestras)
        """
        if not history:
            return 0.0
        return float(np.mean([value for _, value in history]))

    @staticmethod
    def peak_occupancy(history: Sequence[Tuple[float, int]]) -> int:
        """Ocupación máxima observada en un historial."""
        if not history:
            return 0
        return int(max(value for _, value in history))

    @staticmethod
    def congested_share(history: Sequence[Tuple[float, int]], threshold: int) -> float:
        """
        Fracción de muestras con ocupación >= threshold.

        Args:
            history: Muestras (tiempo, vehículos)
            threshold: Umbral de congestión

        Returns:
            float: Valor entre 0.0 y 1.0
        """
        if not history:
            return 0.0
        values = np.array([value for _, value in history])
        return float(np.mean(values >= threshold))

    @staticmethod
    def throughput(vehicles_completed: int, simulation_time: float) -> float:
        """
        Calcula el throughput (vehículos que llegaron a destino por hora).

        Args:
            vehicles_completed: Vehículos que terminaron su ruta
            simulation_time: Tiempo total de simulación en segundos

        Returns:
            float: Vehículos por hora
        """
        if simulation_time <= 0:
            return 0.0

        return (vehicles_completed / simulation_time) * 3600

    @staticmethod
    def create_edge_summary(history_df: pd.DataFrame, threshold: int) -> pd.DataFrame:
        """
        Resume el historial de ocupación por tramo.

        Args:
            history_df: DataFrame de CongestionRecorder.to_dataframe()
            threshold: Umbral de congestión

        Returns:
            pd.DataFrame con columnas edge, mean_vehicles, max_vehicles,
            congested_share y samples, ordenado por ocupación promedio
            (mayor primero)
        """
        columns = ['edge', 'mean_vehicles', 'max_vehicles', 'congested_share', 'samples']
        if history_df.empty:
            return pd.DataFrame(columns=columns)

        df = history_df.assign(congested=history_df['vehicles'] >= threshold)
        summary = df.groupby('edge', sort=False).agg(
            mean_vehicles=('vehicles', 'mean'),
            max_vehicles=('vehicles', 'max'),
            congested_share=('congested', 'mean'),
            samples=('vehicles', 'size'),
        ).reset_index()

        summary = summary.sort_values(['mean_vehicles', 'edge'], ascending=[False, True])
        return summary.reset_index(drop=True)[columns]

    @staticmethod
    def most_congested_edges(history_df: pd.DataFrame, threshold: int, top: int = 5) -> List[str]:
        """Claves "from-to" de los tramos con mayor ocupación promedio."""
        summary = MetricsCalculator.create_edge_summary(history_df, threshold)
        return summary['edge'].head(top).tolist()

    @staticmethod
    def network_occupancy_series(history_df: pd.DataFrame) -> pd.Series:
        """
        Vehículos totales en la red por instante registrado.

        Returns:
            pd.Series indexada por tiempo
        """
        if history_df.empty:
            return pd.Series(dtype=float, name='vehicles')
        return history_df.groupby('time')['vehicles'].sum()

    @staticmethod
    def calculate_improvement(baseline_metrics: Dict, new_metrics: Dict) -> Dict:
        """
        Calcula mejoras porcentuales respecto a una corrida base.

        Args:
            baseline_metrics: Métricas de referencia
            new_metrics: Métricas a comparar

        Returns:
            dict: Diccionario con mejoras porcentuales
        """
        improvements = {}

        # Métricas donde menor es mejor
        for metric in ['avg_trip_time', 'avg_occupancy', 'max_occupancy']:
            baseline_val = baseline_metrics.get(metric, 0)
            new_val = new_metrics.get(metric, 0)

            if baseline_val > 0:
                improvements[metric] = ((baseline_val - new_val) / baseline_val) * 100
            else:
                improvements[metric] = 0.0

        # Métricas donde mayor es mejor
        for metric in ['throughput_per_hour']:
            baseline_val = baseline_metrics.get(metric, 0)
            new_val = new_metrics.get(metric, 0)

            if baseline_val > 0:
                improvements[metric] = ((new_val - baseline_val) / baseline_val) * 100
            else:
                improvements[metric] = 0.0

        return improvements
