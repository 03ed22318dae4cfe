"""
Motor principal de simulación de tráfico vehicular.

Este módulo implementa el simulador que coordina todos los componentes:
red vial, semáforos, generación de vehículos, movimiento y registro de
congestión. Todo el estado mutable vive en la instancia, así que pueden
coexistir varias simulaciones independientes.
"""

import logging
import math
from typing import Dict, List, Mapping, Optional, Tuple, Union

from ..utils.config import CongestionConfig, SimulationSettings
from ..utils.metrics import MetricsCalculator
from .congestion_recorder import CongestionRecorder, Sample
from .random_source import NumpyRandomSource, RandomSource
from .router import Router, congestion_cost
from .traffic_generator import TrafficGenerator
from .traffic_light import SignalController
from .traffic_network import EdgeKey, TrafficNetwork, format_edge_key
from .vehicle import Vehicle, VehicleSnapshot
from .vehicle_motion import VehicleMotionIntegrator, compute_occupancy

logger = logging.getLogger(__name__)


def classify_congestion(count: int) -> str:
    """
    Nivel de congestión de un tramo para colorear la interfaz.

    Returns:
        str: "low", "mid" o "high"
    """
    if count >= CongestionConfig.HIGH_THRESHOLD:
        return "high"
    if count >= CongestionConfig.MID_THRESHOLD:
        return "mid"
    return "low"


class TrafficSimulator:
    """
    Motor principal de simulación de tráfico.

    El único método que modifica el estado es advance(); el resto son
    consultas de solo lectura. No hay concurrencia interna: advance()
    siempre corre completo antes de atender otra llamada.
    """

    def __init__(self, settings: Optional[SimulationSettings] = None,
                 random_source: Optional[RandomSource] = None,
                 seed: Optional[int] = None):
        """
        Inicializa el simulador y construye la red.

        Args:
            settings: Parámetros de simulación (default: SimulationSettings())
            random_source: Fuente aleatoria (default: NumpyRandomSource(seed))
            seed: Semilla para la fuente por defecto

        Raises:
            ValueError: Si se pasan random_source y seed a la vez
        """
        if random_source is not None and seed is not None:
            raise ValueError("Indicar random_source o seed, no ambos")

        self.settings = settings if settings is not None else SimulationSettings()
        self.random_source = random_source if random_source is not None else NumpyRandomSource(seed)

        # Red y semáforos (los sorteos de construcción van en este orden)
        self.network = TrafficNetwork.build_grid(
            rows=self.settings.rows,
            cols=self.settings.cols,
            canvas_width=self.settings.canvas_width,
            canvas_height=self.settings.canvas_height,
            padding=self.settings.padding,
            random_source=self.random_source,
        )
        self.signals = SignalController.for_network(self.network, self.random_source)

        self.router = Router(self.network)
        self.traffic_generator = TrafficGenerator(self.router, self.settings, self.random_source)
        self.motion = VehicleMotionIntegrator(self.network, self.signals, self.settings)
        self.recorder = CongestionRecorder(self.network)

        # Vehículos
        self.active_vehicles: List[Vehicle] = []

        # Estado de simulación
        self.current_time = 0.0
        self.ticks = 0

        # Viajes completados
        self.vehicles_completed = 0
        self.total_trip_time = 0.0

        logger.info("Simulador inicializado: escenario '%s', %s",
                    self.settings.name, self.network)

    def advance(self, tick_seconds: Optional[float] = None):
        """
        Ejecuta un paso de simulación.

        Orden: avanzar reloj, generar vehículos, actualizar semáforos,
        fotografiar ocupación, mover vehículos y registrar la ocupación.

        Args:
            tick_seconds: Duración del paso (default: settings.tick_seconds)

        Raises:
            ValueError: Si la duración no es positiva
        """
        dt = self.settings.tick_seconds if tick_seconds is None else float(tick_seconds)
        if not math.isfinite(dt) or dt <= 0:
            raise ValueError(f"Paso de simulación inválido: {dt}s (debe ser > 0)")

        self.current_time += dt
        self.ticks += 1

        # 1. Generar nuevos vehículos
        self.active_vehicles.extend(self.traffic_generator.generate_vehicles(self.current_time))

        # 2. Actualizar semáforos
        self.signals.update(dt)

        # 3. Ocupación al inicio del movimiento
        occupancy = compute_occupancy(self.active_vehicles)

        # 4. Mover vehículos
        self.active_vehicles, arrived = self.motion.advance(self.active_vehicles, occupancy, dt)
        for vehicle in arrived:
            self.vehicles_completed += 1
            self.total_trip_time += vehicle.get_travel_time(self.current_time)

        # 5. Registrar historial
        self.recorder.record(self.current_time, occupancy)

    def step(self):
        """Ejecuta un paso con la duración configurada."""
        self.advance()

    def run(self, duration: float, verbose: bool = False) -> Dict:
        """
        Ejecuta la simulación durante un tiempo determinado.

        Continúa desde el estado actual (no llama a reset()).

        Args:
            duration: Duración en segundos de simulación
            verbose: Si True, registra el progreso cada 10%

        Returns:
            dict: Métricas finales de la simulación
        """
        num_steps = int(duration / self.settings.tick_seconds)
        report_interval = max(1, num_steps // 10)

        logger.info("Iniciando simulación: %.0fs (%d pasos)", duration, num_steps)

        for step in range(num_steps):
            self.step()

            if verbose and step % report_interval == 0:
                self._log_progress()

        metrics = self.calculate_final_metrics()
        self._log_summary(metrics)
        return metrics

    def get_live_vehicles(self) -> Tuple[VehicleSnapshot, ...]:
        """Retorna una vista inmutable de los vehículos activos."""
        return tuple(vehicle.snapshot() for vehicle in self.active_vehicles)

    def get_edge_occupancy(self) -> Mapping[EdgeKey, int]:
        """Vehículos actualmente en cada tramo ocupado {(from_id, to_id): cantidad}."""
        return compute_occupancy(self.active_vehicles)

    def get_edge_history(self, edge_key: Union[EdgeKey, str]) -> List[Sample]:
        """
        Historial (tiempo, vehículos) de un tramo.

        Raises:
            ValueError: Si el tramo no existe
        """
        return self.recorder.get_history(edge_key)

    def plan_route(self, start: int, end: int) -> List[int]:
        """
        Planifica una ruta considerando velocidad máxima y congestión actual.

        No modifica el estado de la simulación.

        Args:
            start: ID de intersección de origen
            end: ID de intersección de destino

        Returns:
            Lista de IDs de la ruta; [start] si start == end; [] si no hay ruta

        Raises:
            ValueError: Si start o end no pertenecen a la red
        """
        route = self.router.shortest_path(start, end, congestion_cost(self.get_edge_occupancy()))
        if not Router.is_route(route, start, end):
            logger.info("Sin ruta disponible de %d a %d", start, end)
            return []
        return route

    def reset(self):
        """
        Reinicia el simulador al estado inicial.

        Conserva la red (geometría y límites de velocidad) y la duración de
        fase de cada semáforo.
        """
        self.current_time = 0.0
        self.ticks = 0
        self.active_vehicles = []
        self.vehicles_completed = 0
        self.total_trip_time = 0.0

        self.traffic_generator.reset()
        self.signals.reset()
        self.motion.reset()
        self.recorder.reset()

    def calculate_final_metrics(self) -> Dict:
        """
        Calcula métricas de la simulación hasta el momento.

        Returns:
            dict: Diccionario con todas las métricas
        """
        spawn_stats = self.traffic_generator.get_spawn_statistics()
        summary = MetricsCalculator.create_edge_summary(
            self.recorder.to_dataframe(), self.settings.congestion_threshold
        )

        avg_trip_time = (self.total_trip_time / self.vehicles_completed
                         if self.vehicles_completed else 0.0)

        return {
            'simulation_time': self.current_time,
            'ticks': self.ticks,
            'vehicles_generated': spawn_stats['total_generated'],
            'vehicles_dropped': spawn_stats['dropped_same_endpoints'] + spawn_stats['dropped_no_route'],
            'vehicles_completed': self.vehicles_completed,
            'vehicles_active': len(self.active_vehicles),
            'vehicles_removed_invalid': self.motion.dangling_vehicles_removed,
            'throughput_per_hour': MetricsCalculator.throughput(self.vehicles_completed,
                                                                self.current_time),
            'avg_trip_time': avg_trip_time,
            'avg_occupancy': float(summary['mean_vehicles'].mean()) if not summary.empty else 0.0,
            'max_occupancy': int(summary['max_vehicles'].max()) if not summary.empty else 0,
        }

    def get_current_state(self) -> Dict:
        """
        Retorna el estado actual completo de la simulación.

        Returns:
            dict: Estado actual
        """
        occupancy = self.get_edge_occupancy()
        return {
            'time': self.current_time,
            'active_vehicles': len(self.active_vehicles),
            'completed_vehicles': self.vehicles_completed,
            'traffic_lights': {
                int_id: {
                    'phase': light.current_phase_index,
                    'time_in_phase': light.time_in_current_phase,
                    'phase_duration': light.phase_duration,
                }
                for int_id, light in self.signals.lights.items()
            },
            'occupancy': {
                format_edge_key(key): {
                    'vehicles': count,
                    'level': classify_congestion(count),
                    'color': CongestionConfig.LEVEL_COLORS[classify_congestion(count)],
                }
                for key, count in occupancy.items()
            },
        }

    def _log_progress(self):
        logger.info("[T=%6.0fs] Activos: %3d | Completados: %3d | Generados: %3d",
                    self.current_time, len(self.active_vehicles), self.vehicles_completed,
                    self.traffic_generator.total_vehicles_generated)

    def _log_summary(self, metrics: Dict):
        logger.info("Simulación completada en t=%.0fs: generados=%d, completados=%d, activos=%d, "
                    "throughput=%.1f veh/hora, viaje promedio=%.1fs, ocupación máxima=%d",
                    metrics['simulation_time'], metrics['vehicles_generated'],
                    metrics['vehicles_completed'], metrics['vehicles_active'],
                    metrics['throughput_per_hour'], metrics['avg_trip_time'],
                    metrics['max_occupancy'])
