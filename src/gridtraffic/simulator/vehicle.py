"""
Modelo de vehículo.

Un vehículo recorre una ruta fija (lista de intersecciones) asignada al
generarse. Su posición es el índice del tramo actual dentro de la ruta y
el progreso fraccionario sobre ese tramo, en [0, 1).
"""

from typing import NamedTuple, Optional, Sequence, Tuple

from ..utils.config import SimulatorConfig
from .traffic_network import EdgeKey


class VehicleSnapshot(NamedTuple):
    """Vista de solo lectura de un vehículo para consumidores externos."""

    vehicle_id: int
    from_id: int
    to_id: int
    progress: float
    path: Tuple[int, ...]
    speed_kmh: float
    color: str


class Vehicle:
    """
    Representa un vehículo individual en la simulación.

    Invariante mientras está activo: 0 <= current_index < len(path) - 1.
    El progreso vuelve a 0 cada vez que el vehículo pasa al tramo siguiente.
    """

    def __init__(self, vehicle_id: int, path: Sequence[int], speed_kmh: float,
                 spawn_time: float = 0.0, color: str = SimulatorConfig.VEHICLE_COLOR):
        """
        Inicializa un vehículo.

        Args:
            vehicle_id: ID asignado por la simulación
            path: IDs de intersecciones de la ruta (al menos 2)
            speed_kmh: Velocidad de crucero en km/h
            spawn_time: Tiempo de generación (segundos de simulación)
            color: Color para dibujar el vehículo

        Raises:
            ValueError: Si la ruta tiene menos de 2 nodos o la velocidad es negativa
        """
        if len(path) < 2:
            raise ValueError(f"Ruta inválida para vehículo {vehicle_id}: {list(path)} (mín: 2 nodos)")
        if speed_kmh < 0:
            raise ValueError(f"Velocidad negativa para vehículo {vehicle_id}: {speed_kmh}")

        self.id = vehicle_id
        self.path: Tuple[int, ...] = tuple(path)
        self.speed_kmh = speed_kmh
        self.spawn_time = spawn_time
        self.color = color

        self.current_index = 0  # Tramo actual: path[i] → path[i + 1]
        self.progress = 0.0

    @property
    def origin(self) -> int:
        return self.path[0]

    @property
    def destination(self) -> int:
        return self.path[-1]

    @property
    def speed_ms(self) -> float:
        return self.speed_kmh / 3.6

    def get_current_edge(self) -> Optional[EdgeKey]:
        """
        Retorna (from_id, to_id) del tramo actual.

        Retorna None si el índice quedó fuera de la ruta.
        """
        if not 0 <= self.current_index < len(self.path) - 1:
            return None
        return self.path[self.current_index], self.path[self.current_index + 1]

    def get_next_intersection(self) -> Optional[int]:
        """Intersección posterior al tramo actual, o None en el último tramo."""
        after = self.current_index + 2
        return self.path[after] if after < len(self.path) else None

    def is_on_last_edge(self) -> bool:
        return self.current_index >= len(self.path) - 2

    def advance(self, delta_progress: float) -> bool:
        """
        Suma progreso sobre el tramo actual.

        Al completar el tramo (progreso >= 1) pasa al siguiente con
        progreso 0. El progreso sobrante no se traslada.

        Args:
            delta_progress: Fracción del tramo recorrida en este paso

        Returns:
            bool: True si el vehículo sigue en la red, False si llegó a destino
        """
        self.progress += delta_progress

        if self.progress >= 1:
            self.current_index += 1
            self.progress = 0.0
            if self.current_index >= len(self.path) - 1:
                return False
        return True

    def snapshot(self) -> VehicleSnapshot:
        """
        Retorna una vista inmutable del estado actual.

        Raises:
            RuntimeError: Si el vehículo ya no está sobre un tramo
        """
        edge = self.get_current_edge()
        if edge is None:
            raise RuntimeError(f"Vehículo {self.id} fuera de su ruta (índice {self.current_index})")
        return VehicleSnapshot(
            vehicle_id=self.id,
            from_id=edge[0],
            to_id=edge[1],
            progress=self.progress,
            path=self.path,
            speed_kmh=self.speed_kmh,
            color=self.color,
        )

    def get_travel_time(self, current_time: float) -> float:
        """Tiempo transcurrido desde la generación del vehículo."""
        return current_time - self.spawn_time

    def __str__(self) -> str:
        return f"Vehicle(#{self.id}, {self.origin}→{self.destination})"

    def __repr__(self) -> str:
        return (f"Vehicle(id={self.id}, path={list(self.path)}, index={self.current_index}, "
                f"progress={self.progress:.3f}, speed={self.speed_kmh:.1f}km/h)")
