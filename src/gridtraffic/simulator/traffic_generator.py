"""
Generador de tráfico vehicular según la hora del día.

La demanda sigue una curva bimodal (pico de mañana y de tarde). En cada
paso la tasa esperada se divide en una parte entera de vehículos
garantizados y una parte fraccionaria que se usa como probabilidad de
generar uno más. Origen y destino se sortean entre puntos de entrada y
salida ponderados.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, TypeVar

import numpy as np

from ..utils.config import DemandConfig, SimulationSettings, SimulatorConfig
from .random_source import RandomSource
from .router import Router, length_cost
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

T = TypeVar("T")


def roulette_pick(items: Sequence[T], weights: Sequence[float], random_source: RandomSource) -> T:
    """
    Elige un elemento con probabilidad proporcional a su peso.

    Se compara un sorteo uniforme escalado por la suma de pesos contra la
    suma acumulada; si por redondeo no se alcanza, retorna el último.
    """
    if not items:
        raise ValueError("No hay elementos para elegir")

    total = sum(weights)
    target = random_source.random() * total
    acc = 0.0
    for item, weight in zip(items, weights):
        acc += weight
        if target <= acc:
            return item
    return items[-1]


def traffic_curve(sim_time: float) -> float:
    """
    Nivel de demanda relativo en [BASE_LEVEL, 1] para un instante del día.

    Suma dos campanas gaussianas (mañana y tarde) sobre la fracción del
    día, la satura en 1 y la reescala a [BASE_LEVEL, 1].

    Args:
        sim_time: Tiempo de simulación en segundos

    Returns:
        float: Nivel de demanda
    """
    day = (sim_time % SimulatorConfig.DAY_SECONDS) / SimulatorConfig.DAY_SECONDS
    morning = np.exp(-((day - DemandConfig.MORNING_PEAK) / DemandConfig.MORNING_WIDTH) ** 2)
    evening = np.exp(-((day - DemandConfig.EVENING_PEAK) / DemandConfig.EVENING_WIDTH) ** 2)
    peak = min(1.0, float(morning + evening))
    return DemandConfig.BASE_LEVEL + (1 - DemandConfig.BASE_LEVEL) * peak


class TrafficGenerator:
    """
    Genera vehículos según la curva de demanda diaria.

    Cada vehículo recibe una ruta fija calculada por el Router con costo
    geométrico; la ruta no se recalcula durante el viaje.
    """

    def __init__(self, router: Router, settings: SimulationSettings,
                 random_source: RandomSource):
        """
        Inicializa el generador de tráfico.

        Args:
            router: Router sobre la red de la simulación
            settings: Parámetros de simulación (tope por paso, entradas, salidas)
            random_source: Fuente aleatoria
        """
        self.router = router
        self.settings = settings
        self.random_source = random_source

        # Control de generación
        self.next_vehicle_id = 0
        self.total_vehicles_generated = 0
        self.dropped_same_endpoints = 0
        self.dropped_no_route = 0

    def rate_per_tick(self, sim_time: float) -> float:
        """Vehículos esperados en el paso, en [0, max_vehicles_per_tick]."""
        return traffic_curve(sim_time) * self.settings.max_vehicles_per_tick

    def generate_vehicles(self, sim_time: float) -> List[Vehicle]:
        """
        Genera los vehículos de un paso.

        Los intentos garantizados se hacen antes del sorteo del vehículo
        adicional. Los intentos fallidos se descartan sin reintento.

        Args:
            sim_time: Tiempo actual de simulación

        Returns:
            Lista de vehículos nuevos
        """
        rate = self.rate_per_tick(sim_time)
        guaranteed = math.floor(rate)

        vehicles = []
        for _ in range(guaranteed):
            vehicle = self.generate_vehicle(sim_time)
            if vehicle:
                vehicles.append(vehicle)

        if self.random_source.random() < rate - guaranteed:
            vehicle = self.generate_vehicle(sim_time)
            if vehicle:
                vehicles.append(vehicle)

        return vehicles

    def generate_vehicle(self, sim_time: float) -> Optional[Vehicle]:
        """
        Intenta generar un vehículo con ruta calculada.

        Sorteos, en orden: entrada, salida, velocidad.

        Args:
            sim_time: Tiempo actual de simulación

        Returns:
            Vehicle: Nuevo vehículo, o None si origen == destino o no hay ruta
        """
        origin = roulette_pick(self.settings.entry_nodes, self.settings.entry_weights,
                               self.random_source)
        destination = roulette_pick(self.settings.exit_nodes, self.settings.exit_weights,
                                    self.random_source)

        if origin == destination:
            self.dropped_same_endpoints += 1
            logger.debug("Generación descartada en t=%.1f: origen y destino iguales (%d)",
                         sim_time, origin)
            return None

        route = self.router.shortest_path(origin, destination, length_cost)
        if not Router.is_route(route, origin, destination):
            self.dropped_no_route += 1
            logger.debug("Generación descartada en t=%.1f: sin ruta %d → %d",
                         sim_time, origin, destination)
            return None

        speed_kmh = (SimulatorConfig.VEHICLE_MIN_SPEED_KMH
                     + self.random_source.random() * SimulatorConfig.VEHICLE_SPEED_SPREAD_KMH)

        vehicle = Vehicle(
            vehicle_id=self.next_vehicle_id,
            path=route,
            speed_kmh=speed_kmh,
            spawn_time=sim_time,
        )
        self.next_vehicle_id += 1
        self.total_vehicles_generated += 1

        return vehicle

    def get_spawn_statistics(self) -> Dict:
        """
        Retorna estadísticas de generación de vehículos.

        Returns:
            dict: Estadísticas de spawn
        """
        attempts = (self.total_vehicles_generated + self.dropped_same_endpoints
                    + self.dropped_no_route)
        return {
            'total_generated': self.total_vehicles_generated,
            'dropped_same_endpoints': self.dropped_same_endpoints,
            'dropped_no_route': self.dropped_no_route,
            'attempts': attempts,
            'success_rate': self.total_vehicles_generated / attempts if attempts else 0.0,
            'max_vehicles_per_tick': self.settings.max_vehicles_per_tick,
        }

    def reset(self):
        """Reinicia el generador."""
        self.next_vehicle_id = 0
        self.total_vehicles_generated = 0
        self.dropped_same_endpoints = 0
        self.dropped_no_route = 0
