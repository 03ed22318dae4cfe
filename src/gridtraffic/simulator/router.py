"""
Cálculo de rutas más cortas sobre la red vial.

El algoritmo de Dijkstra está parametrizado por una función de costo por
tramo, de modo que el mismo código sirve para asignar rutas a vehículos
nuevos (costo = longitud) y para el planificador interactivo (costo =
tiempo de viaje penalizado por congestión).
"""

from queue import PriorityQueue
from typing import Callable, Dict, List, Mapping, Sequence

from ..utils.config import RoutingConfig
from .traffic_network import EdgeKey, RoadSegment, TrafficNetwork

CostFunction = Callable[[RoadSegment], float]


def length_cost(segment: RoadSegment) -> float:
    """Costo geométrico: longitud del tramo."""
    return segment.length


def congestion_cost(occupancy: Mapping[EdgeKey, int],
                    weight: float = RoutingConfig.CONGESTION_COST_WEIGHT) -> CostFunction:
    """
    Crea una función de costo de tiempo de viaje con penalización por congestión.

    costo = longitud / límite_de_velocidad * (1 + weight * vehículos_en_el_tramo)

    Args:
        occupancy: Vehículos por tramo {(from_id, to_id): cantidad}
        weight: Penalización relativa por vehículo

    Returns:
        Función de costo por tramo
    """
    def cost(segment: RoadSegment) -> float:
        count = occupancy.get(segment.key, 0)
        return (segment.length / segment.speed_limit_kmh) * (1 + count * weight)

    return cost


class Router:
    """
    Buscador de rutas más cortas (Dijkstra) sobre una TrafficNetwork.

    La frontera es una cola de prioridad ordenada por (distancia, id), así
    que ante empates se expande primero la intersección de menor ID y los
    resultados son determinísticos.
    """

    def __init__(self, network: TrafficNetwork):
        self.network = network

    def shortest_path(self, start: int, end: int, cost_fn: CostFunction = length_cost) -> List[int]:
        """
        Calcula la ruta de menor costo entre dos intersecciones.

        Args:
            start: ID de intersección de origen
            end: ID de intersección de destino
            cost_fn: Costo (no negativo) de cada tramo

        Returns:
            Lista de IDs desde start hasta end. Si start == end retorna
            [start]. Si end no es alcanzable el resultado tiene menos de 2
            nodos y debe tratarse como "sin ruta".

        Raises:
            ValueError: Si start o end no pertenecen a la red, o algún
                        costo es negativo
        """
        self.network.require_intersection(start)
        self.network.require_intersection(end)

        if start == end:
            return [start]

        distances: Dict[int, float] = {node_id: float('inf')
                                       for node_id in self.network.get_all_intersection_ids()}
        previous: Dict[int, int] = {}
        visited = set()

        distances[start] = 0.0
        queue = PriorityQueue()
        queue.put((0.0, start))

        while not queue.empty():
            current_dist, current = queue.get()

            # Entrada obsoleta: el nodo ya se expandió con menor distancia
            if current in visited:
                continue
            visited.add(current)

            if current == end:
                break

            for segment in self.network.adjacency.get(current, ()):
                neighbor = segment.to_id
                if neighbor in visited:
                    continue

                weight = cost_fn(segment)
                if weight < 0:
                    raise ValueError(f"Costo negativo en tramo {segment.key}: {weight}")

                alt = current_dist + weight
                if alt < distances[neighbor]:
                    distances[neighbor] = alt
                    previous[neighbor] = current
                    queue.put((alt, neighbor))

        path = []
        node = end
        while node is not None:
            path.append(node)
            if node == start:
                break
            node = previous.get(node)
        path.reverse()

        return path

    def get_path_cost(self, path: Sequence[int], cost_fn: CostFunction = length_cost) -> float:
        """
        Suma el costo de los tramos de una ruta.

        Raises:
            ValueError: Si dos nodos consecutivos no están conectados
        """
        total = 0.0
        for i in range(len(path) - 1):
            segment = self.network.get_segment(path[i], path[i + 1])
            if segment is None:
                raise ValueError(f"No existe tramo {path[i]} → {path[i + 1]}")
            total += cost_fn(segment)
        return total

    @staticmethod
    def is_route(path: Sequence[int], start: int, end: int) -> bool:
        """Indica si un resultado de shortest_path es una ruta utilizable."""
        if start == end:
            return list(path) == [start]
        return len(path) >= 2 and path[0] == start and path[-1] == end
