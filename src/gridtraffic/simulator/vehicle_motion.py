"""
Integrador de movimiento de vehículos.

En cada paso se toma primero una foto de la ocupación de todos los tramos
y luego se avanza cada vehículo leyendo esa foto, de modo que el orden de
iteración no cambia el resultado. La velocidad efectiva es la velocidad de
crucero multiplicada por un factor de congestión (dos escalones) y, si el
giro siguiente no está habilitado por el semáforo, por un factor de
amortiguación que deja al vehículo avanzar muy lento en la cola.
"""

import logging
from collections import Counter
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from ..utils.config import SimulationSettings, SimulatorConfig
from .traffic_light import SignalController
from .traffic_network import EdgeKey, TrafficNetwork
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


def compute_occupancy(vehicles: Iterable[Vehicle]) -> Mapping[EdgeKey, int]:
    """
    Cuenta vehículos por tramo.

    Returns:
        Vista de solo lectura {(from_id, to_id): cantidad}; los tramos
        vacíos no aparecen
    """
    counts = Counter()
    for vehicle in vehicles:
        edge = vehicle.get_current_edge()
        if edge is not None:
            counts[edge] += 1
    return MappingProxyType(dict(counts))


class VehicleMotionIntegrator:
    """
    Avanza los vehículos activos un paso de simulación.
    """

    def __init__(self, network: TrafficNetwork, signals: SignalController,
                 settings: SimulationSettings,
                 blocked_turn_factor: float = SimulatorConfig.BLOCKED_TURN_FACTOR):
        self.network = network
        self.signals = signals
        self.settings = settings
        self.blocked_turn_factor = blocked_turn_factor

        # Estadísticas
        self.dangling_vehicles_removed = 0

    def congestion_factor(self, count: int) -> float:
        """
        Factor de velocidad según la ocupación del tramo.

        1.0 por debajo del umbral, slowdown_factor desde el umbral y
        stop_factor desde umbral + 2.
        """
        threshold = self.settings.congestion_threshold
        if count >= threshold + 2:
            return self.settings.stop_factor
        if count >= threshold:
            return self.settings.slowdown_factor
        return 1.0

    def is_turn_allowed(self, vehicle: Vehicle) -> bool:
        """
        Consulta al semáforo del final del tramo si el próximo giro está habilitado.

        La dirección de llegada es el lado de la intersección por el que
        entra el vehículo; en el último tramo no hay giro y siempre se
        permite.
        """
        edge = vehicle.get_current_edge()
        if edge is None:
            return True
        current_id, junction_id = edge
        after_id = vehicle.get_next_intersection()
        if after_id is None:
            return True

        incoming = self.network.get_direction(junction_id, current_id)
        outgoing = self.network.get_direction(junction_id, after_id)
        return self.signals.is_movement_allowed(junction_id, incoming, outgoing)

    def speed_factor(self, vehicle: Vehicle, occupancy: Mapping[EdgeKey, int]) -> float:
        """Factor de velocidad total del vehículo en este paso."""
        edge = vehicle.get_current_edge()
        factor = self.congestion_factor(occupancy.get(edge, 0))
        if not self.is_turn_allowed(vehicle):
            factor *= self.blocked_turn_factor
        return factor

    def advance(self, vehicles: Iterable[Vehicle], occupancy: Mapping[EdgeKey, int],
                dt: float) -> Tuple[List[Vehicle], List[Vehicle]]:
        """
        Avanza todos los vehículos dt segundos.

        Args:
            vehicles: Vehículos activos
            occupancy: Ocupación por tramo tomada antes de mover a nadie
            dt: Paso de tiempo (segundos)

        Returns:
            (vehículos que siguen activos, vehículos que llegaron a destino)
        """
        active = []
        arrived = []

        for vehicle in vehicles:
            segment = self._resolve_segment(vehicle)
            if segment is None:
                self.dangling_vehicles_removed += 1
                logger.warning("Vehículo %d removido: tramo actual inexistente (ruta %s, índice %d)",
                               vehicle.id, list(vehicle.path), vehicle.current_index)
                continue

            factor = self.speed_factor(vehicle, occupancy)
            velocity = vehicle.speed_ms * factor
            if vehicle.advance(velocity * dt / segment.length):
                active.append(vehicle)
            else:
                arrived.append(vehicle)

        return active, arrived

    def _resolve_segment(self, vehicle: Vehicle):
        edge: Optional[EdgeKey] = vehicle.get_current_edge()
        if edge is None:
            return None
        return self.network.get_segment(*edge)

    def reset(self):
        self.dangling_vehicles_removed = 0
