"""
Configuración global del simulador de tráfico en grilla.

Este módulo contiene todas las constantes y parámetros de configuración
utilizados en el proyecto, y la clase SimulationSettings que agrupa los
parámetros fijos de una instancia de simulación.
"""

import json
import math
from pathlib import Path
from typing import Dict, Optional, Sequence

# Rutas del proyecto
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
SCENARIOS_DIR = DATA_DIR / "scenarios"
DEFAULT_SCENARIO_FILE = SCENARIOS_DIR / "default_grid.json"


# Parámetros del simulador
class SimulatorConfig:
    """Configuración del simulador de tráfico."""

    # Tiempo
    TICK_SECONDS = 0.5  # Paso de simulación en segundos
    DAY_SECONDS = 86400  # Ciclo de la curva de demanda

    # Generación
    MAX_VEHICLES_PER_TICK = 6

    # Velocidad de crucero de los vehículos (km/h)
    VEHICLE_MIN_SPEED_KMH = 30
    VEHICLE_SPEED_SPREAD_KMH = 30
    VEHICLE_COLOR = "#f97316"

    # Congestión
    CONGESTION_THRESHOLD = 3  # Vehículos en un tramo para empezar a frenar
    SLOWDOWN_FACTOR = 0.35
    STOP_FACTOR = 0.05
    BLOCKED_TURN_FACTOR = 0.1  # Avance residual con giro no permitido


# Parámetros de la red
class NetworkConfig:
    """Configuración de la grilla de calles."""

    ROWS = 4
    COLS = 5
    CANVAS_WIDTH = 960
    CANVAS_HEIGHT = 600
    PADDING = 80

    # Límite de velocidad por tramo (km/h)
    MIN_SPEED_LIMIT_KMH = 60
    SPEED_LIMIT_SPREAD_KMH = 20


# Parámetros de semáforos
class TrafficLightConfig:
    """Configuración de semáforos."""

    MIN_PHASE_DURATION = 6  # segundos
    PHASE_DURATION_SPREAD = 4  # segundos

    # Catálogo de fases: movimientos permitidos simultáneamente
    MOVEMENT_PHASES = [
        ["N->S", "S->N"],
        ["E->W", "W->E"],
        ["N->E", "S->W"],
        ["N->W", "S->E"],
        ["E->N", "W->S"],
        ["E->S", "W->N"],
        ["N->S", "N->E", "N->W"],
        ["S->N", "S->E", "S->W"],
        ["E->W", "E->N", "E->S"],
        ["W->E", "W->N", "W->S"],
        ["N->S", "E->W"],
        ["S->N", "W->E"],
    ]


# Curva de demanda diaria
class DemandConfig:
    """Configuración de la generación de tráfico."""

    MORNING_PEAK = 0.28  # Fracción del día
    MORNING_WIDTH = 0.08
    EVENING_PEAK = 0.74
    EVENING_WIDTH = 0.1
    BASE_LEVEL = 0.3  # Demanda mínima (fuera de hora pico)

    # Puntos de entrada y salida con sus pesos
    ENTRY_NODES = [0, 1, 2, 3, 4]
    ENTRY_WEIGHTS = [0.28, 0.22, 0.18, 0.12, 0.2]
    EXIT_NODES = [12, 13, 14, 15, 16, 17]
    EXIT_WEIGHTS = [0.2, 0.2, 0.15, 0.15, 0.18, 0.12]


# Ruteo interactivo
class RoutingConfig:
    """Configuración del planificador de rutas."""

    CONGESTION_COST_WEIGHT = 0.15  # Penalización por vehículo en el tramo


# Historial de congestión
class HistoryConfig:
    """Configuración del registro de ocupación por tramo."""

    MAX_SAMPLES = 200


# Niveles de congestión para la interfaz
class CongestionConfig:
    """Umbrales de clasificación de congestión."""

    MID_THRESHOLD = 2
    HIGH_THRESHOLD = 5

    LEVEL_COLORS = {
        "low": "#2f9e44",
        "mid": "#f4b400",
        "high": "#e03131",
    }


# Logging
class LoggingConfig:
    """Configuración de logging."""

    LOG_LEVEL = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE = PROJECT_ROOT / "simulation.log"


class SimulationSettings:
    """
    Parámetros de una instancia de simulación.

    Se fijan al construir el simulador y no cambian durante la ejecución.
    Los valores por defecto salen de las clases de configuración de este
    módulo.
    """

    def __init__(self,
                 tick_seconds: float = SimulatorConfig.TICK_SECONDS,
                 max_vehicles_per_tick: float = SimulatorConfig.MAX_VEHICLES_PER_TICK,
                 congestion_threshold: int = SimulatorConfig.CONGESTION_THRESHOLD,
                 slowdown_factor: float = SimulatorConfig.SLOWDOWN_FACTOR,
                 stop_factor: float = SimulatorConfig.STOP_FACTOR,
                 entry_nodes: Optional[Sequence[int]] = None,
                 entry_weights: Optional[Sequence[float]] = None,
                 exit_nodes: Optional[Sequence[int]] = None,
                 exit_weights: Optional[Sequence[float]] = None,
                 rows: int = NetworkConfig.ROWS,
                 cols: int = NetworkConfig.COLS,
                 canvas_width: float = NetworkConfig.CANVAS_WIDTH,
                 canvas_height: float = NetworkConfig.CANVAS_HEIGHT,
                 padding: float = NetworkConfig.PADDING,
                 name: str = "default"):
        """
        Inicializa los parámetros de simulación.

        Args:
            tick_seconds: Duración de un paso de simulación (segundos)
            max_vehicles_per_tick: Tope de vehículos generados por paso
            congestion_threshold: Ocupación a partir de la cual se frena
            slowdown_factor: Factor de velocidad con congestión moderada
            stop_factor: Factor de velocidad con congestión severa
            entry_nodes: IDs de intersecciones de entrada
            entry_weights: Pesos de cada entrada
            exit_nodes: IDs de intersecciones de salida
            exit_weights: Pesos de cada salida
            rows: Filas de la grilla
            cols: Columnas de la grilla
            canvas_width: Ancho del área de dibujo
            canvas_height: Alto del área de dibujo
            padding: Margen alrededor de la grilla
            name: Nombre del escenario

        Raises:
            ValueError: Si algún parámetro no es válido
        """
        self.name = name
        self.tick_seconds = float(tick_seconds)
        self.max_vehicles_per_tick = float(max_vehicles_per_tick)
        self.congestion_threshold = int(congestion_threshold)
        self.slowdown_factor = float(slowdown_factor)
        self.stop_factor = float(stop_factor)

        self.entry_nodes = tuple(DemandConfig.ENTRY_NODES if entry_nodes is None else entry_nodes)
        self.entry_weights = tuple(DemandConfig.ENTRY_WEIGHTS if entry_weights is None else entry_weights)
        self.exit_nodes = tuple(DemandConfig.EXIT_NODES if exit_nodes is None else exit_nodes)
        self.exit_weights = tuple(DemandConfig.EXIT_WEIGHTS if exit_weights is None else exit_weights)

        self.rows = int(rows)
        self.cols = int(cols)
        self.canvas_width = float(canvas_width)
        self.canvas_height = float(canvas_height)
        self.padding = float(padding)

        self._validate()

    def _validate(self):
        """Verifica la consistencia de los parámetros."""
        if not math.isfinite(self.tick_seconds) or self.tick_seconds <= 0:
            raise ValueError(f"Paso de simulación inválido: {self.tick_seconds}s (debe ser > 0)")
        if not math.isfinite(self.max_vehicles_per_tick) or self.max_vehicles_per_tick < 0:
            raise ValueError(
                f"Tope de vehículos por paso inválido: {self.max_vehicles_per_tick} (debe ser >= 0)"
            )
        if self.congestion_threshold < 0:
            raise ValueError(f"Umbral de congestión negativo: {self.congestion_threshold}")
        for label, factor in (("slowdown_factor", self.slowdown_factor),
                              ("stop_factor", self.stop_factor)):
            if not 0 <= factor <= 1:
                raise ValueError(f"{label} fuera de rango [0, 1]: {factor}")

        self._validate_choices("entrada", self.entry_nodes, self.entry_weights)
        self._validate_choices("salida", self.exit_nodes, self.exit_weights)

        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Grilla inválida: {self.rows}x{self.cols} (mín: 1x1)")
        for label, value in (("canvas_width", self.canvas_width),
                             ("canvas_height", self.canvas_height),
                             ("padding", self.padding)):
            if not math.isfinite(value):
                raise ValueError(f"{label} debe ser finito: {value}")

        max_node_id = self.rows * self.cols - 1
        for node_id in self.entry_nodes + self.exit_nodes:
            if not 0 <= node_id <= max_node_id:
                raise ValueError(
                    f"Intersección {node_id} fuera de la grilla {self.rows}x{self.cols} "
                    f"(IDs válidos: 0..{max_node_id})"
                )

    @staticmethod
    def _validate_choices(label: str, nodes: Sequence[int], weights: Sequence[float]):
        if not nodes:
            raise ValueError(f"Debe configurarse al menos un punto de {label}")
        if len(nodes) != len(weights):
            raise ValueError(
                f"Puntos de {label} y pesos no coinciden: {len(nodes)} nodos, {len(weights)} pesos"
            )
        if any(w < 0 for w in weights):
            raise ValueError(f"Pesos de {label} negativos: {list(weights)}")
        if sum(weights) <= 0:
            raise ValueError(f"La suma de pesos de {label} debe ser positiva")

    @classmethod
    def from_json(cls, scenario_file: str) -> "SimulationSettings":
        """
        Carga los parámetros desde un archivo JSON de escenario.

        El archivo sigue el formato:
            {
                "scenario_name": "...",
                "global_parameters": {"tick_seconds": 0.5, ...},
                "grid": {"rows": 4, "cols": 5, ...},
                "demand": {"entry_nodes": [...], "entry_weights": [...], ...}
            }

        Todas las secciones y claves son opcionales.

        Args:
            scenario_file: Ruta al archivo JSON

        Returns:
            SimulationSettings: Parámetros cargados

        Raises:
            FileNotFoundError: Si el archivo no existe
            ValueError: Si algún parámetro no es válido
        """
        path = Path(scenario_file)
        if not path.exists():
            raise FileNotFoundError(f"Escenario no encontrado: {scenario_file}")

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Escenario inválido en {scenario_file}: se esperaba un objeto JSON")

        params = cls._section(data, 'global_parameters', scenario_file)
        grid = cls._section(data, 'grid', scenario_file)
        demand = cls._section(data, 'demand', scenario_file)

        return cls(
            tick_seconds=params.get('tick_seconds', SimulatorConfig.TICK_SECONDS),
            max_vehicles_per_tick=params.get('max_vehicles_per_tick',
                                             SimulatorConfig.MAX_VEHICLES_PER_TICK),
            congestion_threshold=params.get('congestion_threshold',
                                            SimulatorConfig.CONGESTION_THRESHOLD),
            slowdown_factor=params.get('slowdown_factor', SimulatorConfig.SLOWDOWN_FACTOR),
            stop_factor=params.get('stop_factor', SimulatorConfig.STOP_FACTOR),
            entry_nodes=demand.get('entry_nodes'),
            entry_weights=demand.get('entry_weights'),
            exit_nodes=demand.get('exit_nodes'),
            exit_weights=demand.get('exit_weights'),
            rows=grid.get('rows', NetworkConfig.ROWS),
            cols=grid.get('cols', NetworkConfig.COLS),
            canvas_width=grid.get('canvas_width', NetworkConfig.CANVAS_WIDTH),
            canvas_height=grid.get('canvas_height', NetworkConfig.CANVAS_HEIGHT),
            padding=grid.get('padding', NetworkConfig.PADDING),
            name=data.get('scenario_name', path.stem),
        )

    @staticmethod
    def _section(data: Dict, name: str, scenario_file: str) -> Dict:
        """Sección opcional del escenario; null equivale a ausente."""
        section = data.get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ValueError(
                f"Sección '{name}' inválida en {scenario_file}: se esperaba un objeto, "
                f"se obtuvo {type(section).__name__}"
            )
        return section

    def to_dict(self) -> Dict:
        """Retorna los parámetros en el mismo formato que from_json."""
        return {
            'scenario_name': self.name,
            'global_parameters': {
                'tick_seconds': self.tick_seconds,
                'max_vehicles_per_tick': self.max_vehicles_per_tick,
                'congestion_threshold': self.congestion_threshold,
                'slowdown_factor': self.slowdown_factor,
                'stop_factor': self.stop_factor,
            },
            'grid': {
                'rows': self.rows,
                'cols': self.cols,
                'canvas_width': self.canvas_width,
                'canvas_height': self.canvas_height,
                'padding': self.padding,
            },
            'demand': {
                'entry_nodes': list(self.entry_nodes),
                'entry_weights': list(self.entry_weights),
                'exit_nodes': list(self.exit_nodes),
                'exit_weights': list(self.exit_weights),
            },
        }

    def __repr__(self) -> str:
        return (f"SimulationSettings(name='{self.name}', grid={self.rows}x{self.cols}, "
                f"tick={self.tick_seconds}s, max_per_tick={self.max_vehicles_per_tick})")


if __name__ == "__main__":
    print(f"Directorio del proyecto: {PROJECT_ROOT}")
    print(f"Escenario por defecto: {DEFAULT_SCENARIO_FILE}")
    print(SimulationSettings())
