"""
Tests para el módulo de red vial (TrafficNetwork).
"""

import pytest
import sys
from pathlib import Path

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gridtraffic.simulator.random_source import NumpyRandomSource, SequenceRandomSource
from gridtraffic.simulator.traffic_network import (
    TrafficNetwork, Intersection, RoadSegment, parse_edge_key, format_edge_key
)


def build_small_grid(rows=2, cols=2, random_source=None):
    """Grilla de prueba: canvas 300x300 con margen 50 (separación 200)."""
    if random_source is None:
        random_source = SequenceRandomSource([0.5])
    return TrafficNetwork.build_grid(rows, cols, 300, 300, 50, random_source)


class TestIntersection:
    """Tests para la clase Intersection."""

    def test_intersection_creation(self):
        """Test de creación básica de intersección."""
        intersection = Intersection(intersection_id=1, x=50.0, y=80.0)

        assert intersection.id == 1
        assert intersection.position == (50.0, 80.0)

    def test_distance(self):
        """Test de distancia euclidiana."""
        a = Intersection(0, 0.0, 0.0)
        b = Intersection(1, 3.0, 4.0)

        assert a.distance_to(b) == pytest.approx(5.0)


class TestRoadSegment:
    """Tests para la clase RoadSegment."""

    def test_segment_creation(self):
        """Test de creación de segmento."""
        segment = RoadSegment(segment_id=0, from_id=1, to_id=2, length=200, speed_limit_kmh=70)

        assert segment.from_id == 1
        assert segment.to_id == 2
        assert segment.length == 200
        assert segment.key == (1, 2)


class TestEdgeKeys:
    """Tests para las claves de tramo."""

    def test_parse_tuple_and_text(self):
        assert parse_edge_key((0, 1)) == (0, 1)
        assert parse_edge_key([3, 2]) == (3, 2)
        assert parse_edge_key("12-7") == (12, 7)

    def test_format(self):
        assert format_edge_key((4, 9)) == "4-9"

    @pytest.mark.parametrize("bad_key", ["a-b", "0-1-2", "01", 5, (1,)])
    def test_invalid_keys(self, bad_key):
        with pytest.raises(ValueError):
            parse_edge_key(bad_key)


class TestTrafficNetwork:
    """Tests para la clase TrafficNetwork."""

    def test_empty_network_creation(self):
        """Test de creación de red vacía."""
        network = TrafficNetwork()

        assert len(network.intersections) == 0
        assert len(network.segments) == 0

    def test_grid_layout(self):
        """Test de posiciones de una grilla 2x2."""
        network = build_small_grid()

        assert network.get_all_intersection_ids() == [0, 1, 2, 3]
        assert network.get_intersection(0).position == (50, 50)
        assert network.get_intersection(1).position == (250, 50)
        assert network.get_intersection(2).position == (50, 250)
        assert network.get_intersection(3).position == (250, 250)

    def test_grid_segments(self):
        """Test de tramos: cada par vecino tiene dos sentidos."""
        network = build_small_grid()

        assert len(network.segments) == 8
        assert network.get_all_edge_keys() == [
            (0, 1), (1, 0), (0, 2), (2, 0), (1, 3), (3, 1), (2, 3), (3, 2)
        ]
        for segment in network.segments.values():
            assert segment.length == pytest.approx(200)
            assert network.get_segment(segment.to_id, segment.from_id) is not None

        # Sin diagonales
        assert network.get_segment(0, 3) is None

    def test_segment_ids_in_creation_order(self):
        network = build_small_grid()

        ids = [segment.id for segment in network.segments.values()]
        assert ids == list(range(8))

    def test_adjacency_order(self):
        """Test de lista de adyacencia en orden de inserción."""
        network = build_small_grid()

        assert [s.to_id for s in network.get_outgoing_segments(0)] == [1, 2]
        assert [s.to_id for s in network.get_outgoing_segments(1)] == [0, 3]
        assert [s.to_id for s in network.get_outgoing_segments(3)] == [1, 2]

    def test_grid_size(self):
        """Test de cantidad de nodos y tramos en la grilla por defecto."""
        network = TrafficNetwork.build_grid(4, 5, 960, 600, 80, NumpyRandomSource(1))

        assert len(network.intersections) == 20
        # 2 sentidos * (4 filas * 4 horizontales + 5 columnas * 3 verticales)
        assert len(network.segments) == 62
        assert network.graph.number_of_edges() == 62

    def test_structure_is_deterministic(self):
        """Test: la topología no depende de la fuente aleatoria."""
        net_a = build_small_grid(3, 3, NumpyRandomSource(1))
        net_b = build_small_grid(3, 3, NumpyRandomSource(2))

        assert net_a.get_all_edge_keys() == net_b.get_all_edge_keys()
        for key in net_a.segments:
            assert net_a.segments[key].length == net_b.segments[key].length
            assert net_a.segments[key].id == net_b.segments[key].id
        for node_id in net_a.intersections:
            assert ([s.key for s in net_a.get_outgoing_segments(node_id)] ==
                    [s.key for s in net_b.get_outgoing_segments(node_id)])

        limits_a = [s.speed_limit_kmh for s in net_a.segments.values()]
        limits_b = [s.speed_limit_kmh for s in net_b.segments.values()]
        assert limits_a != limits_b

    def test_speed_limits_in_range(self):
        network = build_small_grid(3, 4, NumpyRandomSource(7))

        for segment in network.segments.values():
            assert 60 <= segment.speed_limit_kmh < 80

    def test_speed_limit_draw_per_segment(self):
        """Test: cada sentido sortea su propio límite, en orden de creación."""
        network = build_small_grid(random_source=SequenceRandomSource([0.0, 0.5]))

        assert network.get_segment(0, 1).speed_limit_kmh == pytest.approx(60)
        assert network.get_segment(1, 0).speed_limit_kmh == pytest.approx(70)

    def test_single_row_and_single_node(self):
        """Test de grillas degeneradas."""
        single = build_small_grid(1, 1)
        assert len(single.intersections) == 1
        assert len(single.segments) == 0

        row = build_small_grid(1, 3)
        assert len(row.segments) == 4
        assert row.get_intersection(2).position == (250, 50)

    def test_flat_axis_needs_no_extent(self):
        """Test: un eje con un solo nodo no exige lugar dentro del margen."""
        row = TrafficNetwork.build_grid(1, 5, 960, 100, 80, SequenceRandomSource([0.5]))
        assert len(row.intersections) == 5
        assert len(row.segments) == 8
        assert row.get_intersection(4).position == (880, 80)

        column = TrafficNetwork.build_grid(3, 1, 100, 600, 80, SequenceRandomSource([0.5]))
        assert len(column.segments) == 4
        assert column.get_direction(0, 1) == "S"

        single = TrafficNetwork.build_grid(1, 1, 160, 160, 80, SequenceRandomSource([0.5]))
        assert single.get_intersection(0).position == (80, 80)
        assert len(single.segments) == 0

    @pytest.mark.parametrize("rows,cols,width,height", [
        (1, 5, 160, 600),
        (3, 1, 960, 160),
        (2, 2, 960, 100),
    ])
    def test_spanned_axis_too_small(self, rows, cols, width, height):
        with pytest.raises(ValueError):
            TrafficNetwork.build_grid(rows, cols, width, height, 80, SequenceRandomSource([0.5]))

    @pytest.mark.parametrize("rows,cols", [(0, 3), (3, 0), (-1, 2)])
    def test_invalid_dimensions(self, rows, cols):
        with pytest.raises(ValueError):
            build_small_grid(rows, cols)

    def test_canvas_too_small(self):
        with pytest.raises(ValueError):
            TrafficNetwork.build_grid(2, 2, 100, 300, 50, SequenceRandomSource([0.5]))

    def test_direction(self):
        """Test de dirección cardinal entre nodos (y crece hacia abajo)."""
        network = build_small_grid()

        assert network.get_direction(0, 1) == "E"
        assert network.get_direction(1, 0) == "W"
        assert network.get_direction(0, 2) == "S"
        assert network.get_direction(2, 0) == "N"

    def test_direction_tie_is_vertical(self):
        network = TrafficNetwork()
        network.add_intersection(0, 0, 0)
        network.add_intersection(1, 10, 10)
        network.add_intersection(2, 10, -10)

        assert network.get_direction(0, 1) == "S"
        assert network.get_direction(0, 2) == "N"

    def test_require_intersection(self):
        network = build_small_grid()

        assert network.require_intersection(3).id == 3
        with pytest.raises(ValueError):
            network.require_intersection(4)
        with pytest.raises(ValueError):
            network.require_intersection(-1)

    def test_add_segment_validation(self):
        network = TrafficNetwork()
        network.add_intersection(0, 0, 0)
        network.add_intersection(1, 0, 100)

        network.add_segment(0, 1, 70)
        assert network.get_segment(0, 1).length == pytest.approx(100)

        with pytest.raises(ValueError):
            network.add_segment(0, 1, 70)
        with pytest.raises(ValueError):
            network.add_segment(0, 9, 70)
        with pytest.raises(ValueError):
            network.add_intersection(0, 5, 5)

    def test_path_length(self):
        network = build_small_grid()

        assert network.get_path_length([0, 1, 3]) == pytest.approx(400)
        assert network.get_path_length([0]) == 0.0

    def test_network_stats(self):
        """Test de estadísticas de la red."""
        network = build_small_grid()

        stats = network.get_network_stats()

        assert stats['num_intersections'] == 4
        assert stats['num_segments'] == 8
        assert stats['total_length'] == pytest.approx(1600)
        assert stats['avg_speed_limit_kmh'] == pytest.approx(70)
        assert stats['is_connected']


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
