"""
Modelo de semáforo con fases de movimientos permitidos.

Cada intersección tiene un semáforo que recorre cíclicamente un catálogo
fijo de fases. Una fase es un conjunto de giros (ej: "N->S", "E->N") que
pueden hacerse al mismo tiempo. La duración de fase es propia de cada
semáforo y se sortea una sola vez al construir la red.
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..utils.config import TrafficLightConfig
from .random_source import RandomSource
from .traffic_network import TrafficNetwork

logger = logging.getLogger(__name__)


def movement_label(incoming: str, outgoing: str) -> str:
    """Etiqueta de un giro, ej: movement_label("W", "S") == "W->S"."""
    return f"{incoming}->{outgoing}"


class TrafficLightPhase:
    """
    Representa una fase del semáforo.

    Una fase es el conjunto de movimientos permitidos simultáneamente
    mientras está activa.
    """

    def __init__(self, index: int, allowed_movements: Iterable[str]):
        """
        Args:
            index: Posición de la fase en el catálogo
            allowed_movements: Movimientos permitidos (ej: ["N->S", "S->N"])
        """
        self.index = index
        self.allowed_movements: FrozenSet[str] = frozenset(allowed_movements)

        if not self.allowed_movements:
            raise ValueError(f"La fase {index} no permite ningún movimiento")

    @property
    def name(self) -> str:
        return "+".join(sorted(self.allowed_movements))

    def allows(self, incoming: str, outgoing: str) -> bool:
        return movement_label(incoming, outgoing) in self.allowed_movements

    def __str__(self) -> str:
        return f"Phase({self.index}: {sorted(self.allowed_movements)})"

    def __repr__(self) -> str:
        return f"TrafficLightPhase(index={self.index}, movements={sorted(self.allowed_movements)})"


def build_phase_catalog(movement_phases: Optional[List[List[str]]] = None) -> List[TrafficLightPhase]:
    """Crea el catálogo de fases (por defecto TrafficLightConfig.MOVEMENT_PHASES)."""
    if movement_phases is None:
        movement_phases = TrafficLightConfig.MOVEMENT_PHASES
    if not movement_phases:
        raise ValueError("Debe configurarse al menos una fase")
    return [TrafficLightPhase(i, movements) for i, movements in enumerate(movement_phases)]


PHASE_CATALOG = build_phase_catalog()


class TrafficLight:
    """
    Semáforo de una intersección.

    Estado: índice de fase actual y tiempo transcurrido en ella. Cada
    update suma dt al tiempo en fase; al alcanzar la duración pasa a la
    fase siguiente (volviendo a 0 después de la última) y el tiempo se
    reinicia a 0. No tiene estado terminal.
    """

    def __init__(self, intersection_id: int, phase_duration: float,
                 phases: Optional[List[TrafficLightPhase]] = None):
        """
        Inicializa un semáforo.

        Args:
            intersection_id: ID de la intersección que controla
            phase_duration: Duración de cada fase en segundos (fija)
            phases: Catálogo de fases (default: PHASE_CATALOG)

        Raises:
            ValueError: Si la duración no es positiva
        """
        if phase_duration <= 0:
            raise ValueError(f"Duración de fase inválida: {phase_duration}s (debe ser > 0)")

        self.intersection_id = intersection_id
        self.phase_duration = phase_duration
        self.phases = phases if phases is not None else PHASE_CATALOG

        self.current_phase_index = 0
        self.time_in_current_phase = 0.0

        # Estadísticas
        self.total_cycles_completed = 0

    @property
    def num_phases(self) -> int:
        return len(self.phases)

    def update(self, dt: float):
        """
        Avanza el semáforo dt segundos.

        Args:
            dt: Paso de tiempo (segundos)
        """
        self.time_in_current_phase += dt

        if self.time_in_current_phase >= self.phase_duration:
            self.current_phase_index = (self.current_phase_index + 1) % self.num_phases
            self.time_in_current_phase = 0.0

            if self.current_phase_index == 0:
                self.total_cycles_completed += 1

    def get_current_phase(self) -> TrafficLightPhase:
        """Retorna la fase actual del semáforo."""
        return self.phases[self.current_phase_index]

    def set_phase(self, phase_index: int):
        """
        Fuerza una fase (reinicia el tiempo en fase).

        Raises:
            ValueError: Si el índice no está en el catálogo
        """
        if not 0 <= phase_index < self.num_phases:
            raise ValueError(
                f"Fase inválida: {phase_index} (válidas: 0..{self.num_phases - 1})"
            )
        self.current_phase_index = phase_index
        self.time_in_current_phase = 0.0

    def is_movement_allowed(self, incoming: Optional[str], outgoing: Optional[str]) -> bool:
        """
        Determina si un giro está permitido en la fase actual.

        Si alguna dirección es None (comienzo o fin del recorrido) el
        movimiento siempre está permitido.
        """
        if incoming is None or outgoing is None:
            return True
        return self.get_current_phase().allows(incoming, outgoing)

    def get_cycle_length(self) -> float:
        """Duración total de un ciclo completo en segundos."""
        return self.phase_duration * self.num_phases

    def reset(self):
        """Reinicia el semáforo al inicio del ciclo (la duración se conserva)."""
        self.current_phase_index = 0
        self.time_in_current_phase = 0.0
        self.total_cycles_completed = 0

    def __str__(self) -> str:
        return f"TrafficLight({self.intersection_id}, phase={self.current_phase_index})"

    def __repr__(self) -> str:
        return (f"TrafficLight(id={self.intersection_id}, "
                f"phase={self.current_phase_index}/{self.num_phases}, "
                f"t={self.time_in_current_phase:.1f}/{self.phase_duration:.2f}s)")


class SignalController:
    """
    Conjunto de semáforos de la red, uno por intersección.

    Avanza todos los semáforos en cada paso y responde si un giro está
    permitido en una intersección dada.
    """

    def __init__(self, lights: Dict[int, TrafficLight]):
        self.lights = lights

    @classmethod
    def for_network(cls, network: TrafficNetwork, random_source: RandomSource,
                    min_duration: float = TrafficLightConfig.MIN_PHASE_DURATION,
                    duration_spread: float = TrafficLightConfig.PHASE_DURATION_SPREAD,
                    phases: Optional[List[TrafficLightPhase]] = None) -> "SignalController":
        """
        Crea un semáforo por intersección, en orden de ID.

        La duración de fase de cada uno se sortea en
        [min_duration, min_duration + duration_spread).
        """
        lights = {}
        for intersection_id in network.get_all_intersection_ids():
            duration = min_duration + random_source.random() * duration_spread
            lights[intersection_id] = TrafficLight(intersection_id, duration, phases)

        logger.info("Semáforos inicializados: %d", len(lights))
        return cls(lights)

    def get_light(self, intersection_id: int) -> TrafficLight:
        """
        Raises:
            ValueError: Si la intersección no tiene semáforo
        """
        light = self.lights.get(intersection_id)
        if light is None:
            raise ValueError(f"La intersección {intersection_id!r} no tiene semáforo")
        return light

    def update(self, dt: float):
        """Actualiza el estado de todos los semáforos."""
        for light in self.lights.values():
            light.update(dt)

    def is_movement_allowed(self, intersection_id: int, incoming: Optional[str],
                            outgoing: Optional[str]) -> bool:
        """
        Determina si el giro incoming->outgoing está permitido ahora.

        Args:
            intersection_id: Intersección donde se gira
            incoming: Lado por el que llega el vehículo, o None
            outgoing: Lado por el que sale, o None

        Returns:
            bool: True si la fase actual lo permite o alguna dirección es None
        """
        if incoming is None or outgoing is None:
            return True
        return self.get_light(intersection_id).is_movement_allowed(incoming, outgoing)

    def get_phase_indices(self) -> Dict[int, int]:
        """Retorna {intersection_id: índice de fase actual}."""
        return {int_id: light.current_phase_index for int_id, light in self.lights.items()}

    def reset(self):
        """Reinicia todos los semáforos a la fase 0."""
        for light in self.lights.values():
            light.reset()
