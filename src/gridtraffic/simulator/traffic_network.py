"""
Modelo de red vial como grafo dirigido.

Este módulo implementa la representación de una grilla de calles como un
grafo dirigido donde los nodos son intersecciones y las aristas son tramos
de calle. La red se construye una sola vez y no cambia durante la simulación.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple, Union

import networkx as nx

from ..utils.config import NetworkConfig
from .random_source import RandomSource

logger = logging.getLogger(__name__)

EdgeKey = Tuple[int, int]


def parse_edge_key(edge_key: Union[EdgeKey, Sequence[int], str]) -> EdgeKey:
    """
    Normaliza la clave de un tramo.

    Acepta una tupla (from_id, to_id) o el texto "from-to".

    Raises:
        ValueError: Si la clave no tiene un formato reconocible
    """
    if isinstance(edge_key, str):
        parts = edge_key.split("-")
        if len(parts) != 2:
            raise ValueError(f"Clave de tramo inválida: '{edge_key}' (esperado 'from-to')")
        try:
            return int(parts[0]), int(parts[1])
        except ValueError:
            raise ValueError(f"Clave de tramo inválida: '{edge_key}' (esperado 'from-to')") from None

    try:
        from_id, to_id = edge_key
    except (TypeError, ValueError):
        raise ValueError(f"Clave de tramo inválida: {edge_key!r}") from None
    return int(from_id), int(to_id)


def format_edge_key(edge_key: EdgeKey) -> str:
    """Retorna la forma textual "from-to" de una clave de tramo."""
    return f"{edge_key[0]}-{edge_key[1]}"


class Intersection:
    """
    Representa una intersección en la red vial.

    Se identifica por un ID entero y una posición 2D en coordenadas de
    dibujo (el eje y crece hacia abajo, como en un canvas).
    """

    __slots__ = ('id', 'x', 'y')

    def __init__(self, intersection_id: int, x: float, y: float):
        self.id = intersection_id
        self.x = x
        self.y = y

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    def distance_to(self, other: "Intersection") -> float:
        """Distancia euclidiana a otra intersección."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def __str__(self) -> str:
        return f"Intersection({self.id})"

    def __repr__(self) -> str:
        return f"Intersection(id={self.id}, pos=({self.x:.1f}, {self.y:.1f}))"


class RoadSegment:
    """
    Representa un tramo de calle entre dos intersecciones.

    Un segmento es una arista dirigida: una calle doble mano son dos
    RoadSegment independientes, cada uno con su propio límite de velocidad.
    """

    __slots__ = ('id', 'from_id', 'to_id', 'length', 'speed_limit_kmh')

    def __init__(self, segment_id: int, from_id: int, to_id: int,
                 length: float, speed_limit_kmh: float):
        """
        Inicializa un segmento de calle.

        Args:
            segment_id: ID del segmento (orden de creación)
            from_id: ID de la intersección de origen
            to_id: ID de la intersección de destino
            length: Longitud geométrica del tramo
            speed_limit_kmh: Velocidad máxima del tramo en km/h
        """
        self.id = segment_id
        self.from_id = from_id
        self.to_id = to_id
        self.length = length
        self.speed_limit_kmh = speed_limit_kmh

    @property
    def key(self) -> EdgeKey:
        return self.from_id, self.to_id

    def __str__(self) -> str:
        return f"RoadSegment({self.from_id} → {self.to_id}, {self.length:.1f})"

    def __repr__(self) -> str:
        return (f"RoadSegment(id={self.id}, from={self.from_id}, to={self.to_id}, "
                f"length={self.length:.1f}, limit={self.speed_limit_kmh:.1f}km/h)")


class TrafficNetwork:
    """
    Representa la red vial completa como un grafo dirigido G = (V, E).

    Mantiene las intersecciones, los tramos indexados por (from_id, to_id)
    y una lista de adyacencia con los tramos salientes de cada nodo en orden
    de inserción. La misma topología se refleja en un nx.DiGraph para
    análisis.
    """

    def __init__(self):
        self.graph = nx.DiGraph()
        self.intersections: Dict[int, Intersection] = {}
        self.segments: Dict[EdgeKey, RoadSegment] = {}
        self.adjacency: Dict[int, List[RoadSegment]] = {}

        # Metadata de la red
        self.rows = 0
        self.cols = 0

    @classmethod
    def build_grid(cls, rows: int, cols: int, canvas_width: float, canvas_height: float,
                   padding: float, random_source: RandomSource,
                   min_speed_limit: float = NetworkConfig.MIN_SPEED_LIMIT_KMH,
                   speed_limit_spread: float = NetworkConfig.SPEED_LIMIT_SPREAD_KMH
                   ) -> "TrafficNetwork":
        """
        Construye una grilla de rows x cols intersecciones.

        Los nodos se numeran fila por fila (id = fila * cols + columna) y se
        ubican equiespaciados dentro del canvas descontando el margen. Cada
        par de vecinos horizontales o verticales se conecta con dos tramos,
        uno por sentido. El único componente aleatorio es el límite de
        velocidad de cada tramo.

        Args:
            rows: Filas de la grilla (>= 1)
            cols: Columnas de la grilla (>= 1)
            canvas_width: Ancho del área de dibujo
            canvas_height: Alto del área de dibujo
            padding: Margen alrededor de la grilla
            random_source: Fuente aleatoria para los límites de velocidad
            min_speed_limit: Límite de velocidad mínimo (km/h)
            speed_limit_spread: Rango del límite de velocidad (km/h)

        Returns:
            TrafficNetwork: Red construida

        Raises:
            ValueError: Si las dimensiones no son válidas
        """
        if rows < 1 or cols < 1:
            raise ValueError(f"Grilla inválida: {rows}x{cols} (mín: 1x1)")

        # Un eje con un solo nodo no necesita extensión
        width = canvas_width - padding * 2
        height = canvas_height - padding * 2
        if (cols > 1 and width <= 0) or (rows > 1 and height <= 0):
            raise ValueError(
                f"Canvas {canvas_width}x{canvas_height} demasiado chico para margen {padding}"
            )

        spacing_x = width / (cols - 1) if cols > 1 else 0.0
        spacing_y = height / (rows - 1) if rows > 1 else 0.0

        network = cls()
        network.rows = rows
        network.cols = cols

        for row in range(rows):
            for col in range(cols):
                network.add_intersection(
                    row * cols + col,
                    padding + col * spacing_x,
                    padding + row * spacing_y,
                )

        def connect(a: int, b: int):
            for from_id, to_id in ((a, b), (b, a)):
                speed_limit = min_speed_limit + random_source.random() * speed_limit_spread
                network.add_segment(from_id, to_id, speed_limit)

        for row in range(rows):
            for col in range(cols):
                current = row * cols + col
                if col < cols - 1:
                    connect(current, current + 1)
                if row < rows - 1:
                    connect(current, current + cols)

        logger.info("Red construida: grilla %dx%d, %d intersecciones, %d tramos",
                    rows, cols, len(network.intersections), len(network.segments))
        return network

    def add_intersection(self, intersection_id: int, x: float, y: float) -> Intersection:
        """
        Agrega una intersección a la red.

        Raises:
            ValueError: Si el ID ya existe
        """
        if intersection_id in self.intersections:
            raise ValueError(f"Intersección duplicada: {intersection_id}")

        intersection = Intersection(intersection_id, x, y)
        self.intersections[intersection_id] = intersection
        self.adjacency[intersection_id] = []
        self.graph.add_node(intersection_id, x=x, y=y)
        return intersection

    def add_segment(self, from_id: int, to_id: int, speed_limit_kmh: float) -> RoadSegment:
        """
        Agrega un tramo dirigido entre dos intersecciones existentes.

        La longitud se calcula a partir de las posiciones de los nodos.

        Raises:
            ValueError: Si alguna intersección no existe o el tramo ya existe
        """
        origin = self.require_intersection(from_id)
        target = self.require_intersection(to_id)
        if (from_id, to_id) in self.segments:
            raise ValueError(f"Tramo duplicado: {from_id} → {to_id}")

        segment = RoadSegment(
            segment_id=len(self.segments),
            from_id=from_id,
            to_id=to_id,
            length=origin.distance_to(target),
            speed_limit_kmh=speed_limit_kmh,
        )
        self.segments[segment.key] = segment
        self.adjacency[from_id].append(segment)

        self.graph.add_edge(
            from_id, to_id,
            length=segment.length,
            speed_limit=speed_limit_kmh,
            segment=segment
        )
        return segment

    def get_intersection(self, intersection_id: int) -> Optional[Intersection]:
        """Retorna la intersección con el ID dado."""
        return self.intersections.get(intersection_id)

    def require_intersection(self, intersection_id: int) -> Intersection:
        """
        Retorna la intersección con el ID dado o falla.

        Raises:
            ValueError: Si el ID no pertenece a la red
        """
        intersection = self.intersections.get(intersection_id)
        if intersection is None:
            raise ValueError(
                f"Intersección desconocida: {intersection_id!r} "
                f"(la red tiene {len(self.intersections)} intersecciones)"
            )
        return intersection

    def get_segment(self, from_id: int, to_id: int) -> Optional[RoadSegment]:
        """Retorna el segmento entre dos intersecciones."""
        return self.segments.get((from_id, to_id))

    def get_outgoing_segments(self, intersection_id: int) -> List[RoadSegment]:
        """Retorna los tramos salientes de una intersección, en orden de inserción."""
        return list(self.adjacency.get(intersection_id, ()))

    def get_all_intersection_ids(self) -> List[int]:
        """Retorna lista de todos los IDs de intersecciones."""
        return list(self.intersections.keys())

    def get_all_edge_keys(self) -> List[EdgeKey]:
        """Retorna las claves de todos los tramos, en orden de creación."""
        return list(self.segments.keys())

    def get_direction(self, from_id: int, to_id: int) -> str:
        """
        Dirección cardinal de un nodo a otro ("N", "S", "E", "W").

        Gana el eje con mayor diferencia; en empate, el vertical. Como el
        eje y crece hacia abajo, dy > 0 es "S".
        """
        a = self.require_intersection(from_id)
        b = self.require_intersection(to_id)
        dx = b.x - a.x
        dy = b.y - a.y
        if abs(dx) > abs(dy):
            return "E" if dx > 0 else "W"
        return "S" if dy > 0 else "N"

    def get_path_length(self, path: Sequence[int]) -> float:
        """
        Calcula la longitud total de una ruta.

        Args:
            path: Lista de IDs de intersecciones

        Returns:
            float: Suma de longitudes de los tramos existentes de la ruta
        """
        total_length = 0.0
        for i in range(len(path) - 1):
            segment = self.get_segment(path[i], path[i + 1])
            if segment:
                total_length += segment.length
        return total_length

    def get_network_stats(self) -> Dict:
        """
        Calcula estadísticas de la red.

        Returns:
            dict: Diccionario con estadísticas de la red
        """
        total_length = sum(seg.length for seg in self.segments.values())
        avg_segment_length = total_length / len(self.segments) if self.segments else 0
        speed_limits = [seg.speed_limit_kmh for seg in self.segments.values()]

        return {
            'rows': self.rows,
            'cols': self.cols,
            'num_intersections': len(self.intersections),
            'num_segments': len(self.segments),
            'total_length': total_length,
            'avg_segment_length': avg_segment_length,
            'avg_speed_limit_kmh': sum(speed_limits) / len(speed_limits) if speed_limits else 0,
            'is_connected': (nx.is_strongly_connected(self.graph)
                             if self.intersections else False),
        }

    def __str__(self) -> str:
        return f"TrafficNetwork({self.rows}x{self.cols}, {len(self.intersections)} intersections)"

    def __repr__(self) -> str:
        return (f"TrafficNetwork(grid={self.rows}x{self.cols}, "
                f"intersections={len(self.intersections)}, "
                f"segments={len(self.segments)})")
