"""
Tests para el simulador de tráfico.
"""

import pytest
import sys
from pathlib import Path

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gridtraffic.simulator import (
    TrafficSimulator, VehicleSnapshot, SequenceRandomSource, classify_congestion
)
from gridtraffic.simulator.vehicle import Vehicle
from gridtraffic.utils.config import CongestionConfig, SimulationSettings


def small_settings(**overrides):
    params = dict(rows=2, cols=3, canvas_width=400, canvas_height=300, padding=50,
                  entry_nodes=[0, 1], entry_weights=[1.0, 1.0],
                  exit_nodes=[4, 5], exit_weights=[1.0, 1.0])
    params.update(overrides)
    return SimulationSettings(**params)


class TestTrafficSimulator:
    """Tests para la clase TrafficSimulator."""

    def test_simulator_creation(self):
        """Test de creación del simulador con la grilla por defecto."""
        simulator = TrafficSimulator(seed=42)

        assert len(simulator.network.intersections) == 20
        assert len(simulator.network.segments) == 62
        assert len(simulator.signals.lights) == 20
        assert simulator.current_time == 0.0
        assert simulator.get_live_vehicles() == ()

    def test_seed_and_source_exclusive(self):
        with pytest.raises(ValueError):
            TrafficSimulator(random_source=SequenceRandomSource([0.5]), seed=1)

    def test_construction_draw_order(self):
        """Test: primero los límites de velocidad, después las duraciones de fase."""
        source = SequenceRandomSource([0.5])
        simulator = TrafficSimulator(small_settings(), random_source=source)

        # 2x3: 7 conexiones -> 14 tramos, más 6 semáforos
        assert source.calls == 14 + 6
        assert simulator.signals.get_light(0).phase_duration == pytest.approx(8.0)

    def test_advance_clock(self):
        """Test: cada paso avanza el reloj exactamente tick_seconds."""
        simulator = TrafficSimulator(small_settings(), seed=1)

        for _ in range(4):
            simulator.advance()

        assert simulator.current_time == pytest.approx(2.0)
        assert simulator.ticks == 4

        simulator.advance(1.5)
        assert simulator.current_time == pytest.approx(3.5)

    @pytest.mark.parametrize("tick", [0, -0.5, float('nan')])
    def test_invalid_tick(self, tick):
        simulator = TrafficSimulator(small_settings(), seed=1)

        with pytest.raises(ValueError):
            simulator.advance(tick)
        assert simulator.current_time == 0.0

    def test_vehicles_are_generated(self):
        simulator = TrafficSimulator(small_settings(max_vehicles_per_tick=4), seed=3)

        simulator.advance()

        assert len(simulator.get_live_vehicles()) >= 1
        assert simulator.traffic_generator.total_vehicles_generated >= 1

    def test_live_vehicles_are_snapshots(self):
        simulator = TrafficSimulator(small_settings(max_vehicles_per_tick=4), seed=3)
        simulator.advance()

        snapshots = simulator.get_live_vehicles()

        assert isinstance(snapshots, tuple)
        for snapshot in snapshots:
            assert isinstance(snapshot, VehicleSnapshot)
            assert 0.0 <= snapshot.progress < 1.0
            assert simulator.network.get_segment(snapshot.from_id, snapshot.to_id) is not None

    def test_vehicle_progress_invariant(self):
        """Test: entre pasos ningún vehículo retrocede ni se duplica."""
        simulator = TrafficSimulator(seed=7)

        for _ in range(300):
            before = {v.id: (v.current_index, v.progress) for v in simulator.active_vehicles}
            simulator.advance()
            ids = [v.id for v in simulator.active_vehicles]
            assert len(ids) == len(set(ids))
            for vehicle in simulator.active_vehicles:
                assert 0 <= vehicle.current_index < len(vehicle.path) - 1
                assert 0.0 <= vehicle.progress < 1.0
                if vehicle.id in before:
                    assert (vehicle.current_index, vehicle.progress) >= before[vehicle.id]

    def test_vehicle_conservation(self):
        """Test: generados = activos + completados."""
        simulator = TrafficSimulator(seed=11)

        simulator.run(300)

        metrics = simulator.calculate_final_metrics()
        assert metrics['vehicles_generated'] == (metrics['vehicles_active']
                                                 + metrics['vehicles_completed'])
        assert metrics['vehicles_removed_invalid'] == 0

    def test_deterministic_with_seed(self):
        """Test: misma semilla produce la misma corrida."""
        sim_a = TrafficSimulator(seed=42)
        sim_b = TrafficSimulator(seed=42)

        for _ in range(100):
            sim_a.advance()
            sim_b.advance()

        assert sim_a.get_live_vehicles() == sim_b.get_live_vehicles()
        assert sim_a.signals.get_phase_indices() == sim_b.signals.get_phase_indices()

    def test_occupancy_matches_vehicles(self):
        simulator = TrafficSimulator(seed=5)
        for _ in range(50):
            simulator.advance()

        occupancy = simulator.get_edge_occupancy()

        assert sum(occupancy.values()) == len(simulator.active_vehicles)
        for snapshot in simulator.get_live_vehicles():
            assert occupancy[(snapshot.from_id, snapshot.to_id)] >= 1

    def test_edge_history(self):
        """Test: cada paso agrega una muestra por tramo, con el tiempo posterior al paso."""
        simulator = TrafficSimulator(small_settings(), seed=2)

        for _ in range(3):
            simulator.advance()

        for key in simulator.network.get_all_edge_keys():
            history = simulator.get_edge_history(key)
            assert [t for t, _ in history] == pytest.approx([0.5, 1.0, 1.5])

        with pytest.raises(ValueError):
            simulator.get_edge_history((0, 5))

    def test_edge_history_bounded(self):
        simulator = TrafficSimulator(small_settings(), seed=2)

        for _ in range(250):
            simulator.advance()

        history = simulator.get_edge_history("0-1")
        assert len(history) == 200
        assert history[0][0] == pytest.approx(51 * 0.5)
        assert history[-1][0] == pytest.approx(250 * 0.5)

    def test_signal_cycling(self):
        """Test: los semáforos recorren todas las fases y vuelven a la 0."""
        simulator = TrafficSimulator(small_settings(max_vehicles_per_tick=0), seed=4)
        light = simulator.signals.get_light(0)
        steps = int(10 * light.get_cycle_length() / simulator.settings.tick_seconds) + 1

        visited = set()
        for _ in range(steps):
            simulator.advance()
            visited.add(light.current_phase_index)

        assert visited == set(range(light.num_phases))
        assert light.total_cycles_completed >= 9

    def test_plan_route(self):
        """Test de planificación de rutas."""
        simulator = TrafficSimulator(seed=42)
        for _ in range(20):
            simulator.advance()
        time_before = simulator.current_time
        vehicles_before = simulator.get_live_vehicles()

        route = simulator.plan_route(0, 19)

        assert route[0] == 0
        assert route[-1] == 19
        for a, b in zip(route, route[1:]):
            assert simulator.network.get_segment(a, b) is not None

        # No modifica el estado
        assert simulator.current_time == time_before
        assert simulator.get_live_vehicles() == vehicles_before

    def test_plan_route_same_node(self):
        simulator = TrafficSimulator(seed=42)

        assert simulator.plan_route(7, 7) == [7]

    @pytest.mark.parametrize("start,end", [(0, 20), (-1, 3), (25, 30)])
    def test_plan_route_invalid(self, start, end):
        simulator = TrafficSimulator(seed=42)

        with pytest.raises(ValueError):
            simulator.plan_route(start, end)

    def test_reset(self):
        """Test: reset vuelve al estado inicial y es idempotente."""
        simulator = TrafficSimulator(seed=42)
        durations = {i: light.phase_duration for i, light in simulator.signals.lights.items()}
        limits = {key: seg.speed_limit_kmh for key, seg in simulator.network.segments.items()}
        for _ in range(100):
            simulator.advance()

        simulator.reset()
        first = simulator.get_current_state()
        simulator.reset()

        assert simulator.get_current_state() == first
        assert simulator.current_time == 0.0
        assert simulator.ticks == 0
        assert simulator.get_live_vehicles() == ()
        assert simulator.get_edge_history((0, 1)) == []
        assert set(simulator.signals.get_phase_indices().values()) == {0}
        assert simulator.traffic_generator.next_vehicle_id == 0
        assert {i: l.phase_duration for i, l in simulator.signals.lights.items()} == durations
        assert {k: s.speed_limit_kmh for k, s in simulator.network.segments.items()} == limits

    def test_run_continues_from_current_state(self):
        simulator = TrafficSimulator(small_settings(), seed=9)
        simulator.run(5)

        metrics = simulator.run(5)

        assert metrics['simulation_time'] == pytest.approx(10.0)
        assert metrics['ticks'] == 20

    def test_final_metrics(self):
        """Test de métricas finales."""
        simulator = TrafficSimulator(seed=42)

        metrics = simulator.run(120)

        expected_keys = {
            'simulation_time', 'ticks', 'vehicles_generated', 'vehicles_dropped',
            'vehicles_completed', 'vehicles_active', 'vehicles_removed_invalid',
            'throughput_per_hour', 'avg_trip_time', 'avg_occupancy', 'max_occupancy',
        }
        assert set(metrics) == expected_keys
        assert metrics['ticks'] == 240
        assert metrics['vehicles_generated'] > 0
        assert metrics['avg_occupancy'] >= 0
        assert metrics['max_occupancy'] >= 0

    def test_metrics_before_running(self):
        metrics = TrafficSimulator(seed=1).calculate_final_metrics()

        assert metrics['throughput_per_hour'] == 0.0
        assert metrics['avg_trip_time'] == 0.0
        assert metrics['max_occupancy'] == 0

    def test_current_state(self):
        simulator = TrafficSimulator(small_settings(), seed=6)
        for _ in range(10):
            simulator.advance()

        state = simulator.get_current_state()

        assert state['time'] == pytest.approx(5.0)
        assert state['active_vehicles'] == len(simulator.active_vehicles)
        assert len(state['traffic_lights']) == 6
        for edge, info in state['occupancy'].items():
            assert info['level'] == classify_congestion(info['vehicles'])
            assert info['color'] == CongestionConfig.LEVEL_COLORS[info['level']]

    def test_current_state_colors_by_level(self):
        """Test: cada nivel de congestión se reporta con su color."""
        simulator = TrafficSimulator(small_settings(max_vehicles_per_tick=0), seed=6)
        simulator.active_vehicles = [Vehicle(i, [0, 1], 40.0) for i in range(5)]
        simulator.active_vehicles.append(Vehicle(5, [1, 2], 40.0))

        occupancy = simulator.get_current_state()['occupancy']

        assert occupancy['0-1'] == {'vehicles': 5, 'level': 'high',
                                    'color': CongestionConfig.LEVEL_COLORS['high']}
        assert occupancy['1-2']['color'] == CongestionConfig.LEVEL_COLORS['low']

    def test_from_json_settings(self, tmp_path):
        scenario_file = tmp_path / "escenario.json"
        scenario_file.write_text(
            '{"grid": {"rows": 2, "cols": 2}, '
            '"demand": {"entry_nodes": [0], "entry_weights": [1], '
            '"exit_nodes": [3], "exit_weights": [1]}}',
            encoding="utf-8"
        )

        simulator = TrafficSimulator(SimulationSettings.from_json(str(scenario_file)), seed=1)

        assert len(simulator.network.intersections) == 4


class TestClassifyCongestion:
    """Tests de niveles de congestión."""

    @pytest.mark.parametrize("count,level", [
        (0, "low"), (1, "low"), (2, "mid"), (4, "mid"), (5, "high"), (9, "high")
    ])
    def test_levels(self, count, level):
        assert classify_congestion(count) == level


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
