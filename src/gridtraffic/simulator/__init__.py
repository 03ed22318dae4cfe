"""
Simulador de tráfico vehicular en grilla.

Este módulo contiene el motor de simulación que modela:
- Red vial como grafo dirigido
- Semáforos con fases de giros permitidos
- Rutas más cortas con costo configurable
- Generación de tráfico según la hora del día
- Movimiento de vehículos y registro de congestión
"""

from .traffic_network import TrafficNetwork, Intersection, RoadSegment, parse_edge_key
from .traffic_light import TrafficLight, TrafficLightPhase, SignalController, PHASE_CATALOG
from .router import Router, length_cost, congestion_cost
from .vehicle import Vehicle, VehicleSnapshot
from .vehicle_motion import VehicleMotionIntegrator, compute_occupancy
from .congestion_recorder import CongestionRecorder
from .traffic_generator import TrafficGenerator, traffic_curve, roulette_pick
from .random_source import RandomSource, NumpyRandomSource, SequenceRandomSource
from .traffic_simulator import TrafficSimulator, classify_congestion

__all__ = [
    'TrafficNetwork',
    'Intersection',
    'RoadSegment',
    'parse_edge_key',
    'TrafficLight',
    'TrafficLightPhase',
    'SignalController',
    'PHASE_CATALOG',
    'Router',
    'length_cost',
    'congestion_cost',
    'Vehicle',
    'VehicleSnapshot',
    'VehicleMotionIntegrator',
    'compute_occupancy',
    'CongestionRecorder',
    'TrafficGenerator',
    'traffic_curve',
    'roulette_pick',
    'RandomSource',
    'NumpyRandomSource',
    'SequenceRandomSource',
    'TrafficSimulator',
    'classify_congestion',
]
