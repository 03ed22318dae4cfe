"""
Script de ejemplo: Simulación completa de tráfico en una grilla 4x5

Este script demuestra cómo usar el simulador sin interfaz gráfica:
corre el escenario por defecto, muestra los tramos más congestionados,
planifica una ruta y compara contra un escenario con más demanda.
"""

import sys
from pathlib import Path

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gridtraffic.simulator import TrafficSimulator
from gridtraffic.utils.config import DEFAULT_SCENARIO_FILE, LoggingConfig, SimulationSettings
from gridtraffic.utils.logger import setup_logging
from gridtraffic.utils.metrics import MetricsCalculator

SEED = 42


def print_metrics(title, metrics):
    print(f"\n{title}:")
    print(f"  Vehículos generados:  {metrics['vehicles_generated']}")
    print(f"  Vehículos completados: {metrics['vehicles_completed']}")
    print(f"  Vehículos activos:    {metrics['vehicles_active']}")
    print(f"  Viaje promedio:       {metrics['avg_trip_time']:.1f} s")
    print(f"  Ocupación promedio:   {metrics['avg_occupancy']:.2f} veh/tramo")
    print(f"  Ocupación máxima:     {metrics['max_occupancy']} veh")
    print(f"  Throughput:           {metrics['throughput_per_hour']:.0f} veh/h")


def run_default_scenario():
    """
    Ejecuta el escenario por defecto durante 10 minutos simulados.

    Returns:
        TrafficSimulator: Simulador al final de la corrida
    """
    print("\n" + "="*70)
    print("ESCENARIO POR DEFECTO")
    print("="*70)

    settings = SimulationSettings.from_json(str(DEFAULT_SCENARIO_FILE))
    simulator = TrafficSimulator(settings, seed=SEED)
    simulator.run(duration=600, verbose=True)

    return simulator


def run_rush_scenario():
    """
    Mismo escenario con el doble de demanda por paso.

    Returns:
        dict: Métricas de la simulación
    """
    print("\n" + "="*70)
    print("ESCENARIO DE ALTA DEMANDA")
    print("="*70)

    params = SimulationSettings.from_json(str(DEFAULT_SCENARIO_FILE)).to_dict()
    params['global_parameters']['max_vehicles_per_tick'] *= 2

    settings = SimulationSettings(
        name="alta demanda",
        **params['global_parameters'],
        **params['grid'],
        **params['demand'],
    )
    simulator = TrafficSimulator(settings, seed=SEED)

    return simulator.run(duration=600, verbose=False)


def main():
    """Función principal del ejemplo."""
    setup_logging("INFO", log_file=LoggingConfig.LOG_FILE)

    print("="*70)
    print("EJEMPLO COMPLETO DE SIMULACIÓN DE TRÁFICO EN GRILLA")
    print("="*70)

    # 1. Escenario por defecto
    simulator = run_default_scenario()
    baseline_metrics = simulator.calculate_final_metrics()
    print_metrics("Métricas escenario por defecto", baseline_metrics)

    # 2. Tramos más congestionados
    history = simulator.recorder.to_dataframe()
    summary = MetricsCalculator.create_edge_summary(history, simulator.settings.congestion_threshold)
    print("\nTramos más congestionados:")
    print(summary.head(5).to_string(index=False))

    # 3. Ruta sugerida con la congestión actual
    route = simulator.plan_route(0, 19)
    print(f"\nRuta sugerida 0 → 19: {' → '.join(str(node) for node in route)}")

    # 4. Comparar contra alta demanda
    rush_metrics = run_rush_scenario()
    print_metrics("Métricas alta demanda", rush_metrics)

    improvements = MetricsCalculator.calculate_improvement(baseline_metrics, rush_metrics)
    print("\nDiferencia (% respecto al escenario por defecto):")
    for metric, improvement in improvements.items():
        symbol = "✓" if improvement > 0 else "✗"
        print(f"  {symbol} {metric:25s}: {improvement:+.1f}%")

    print("\n" + "="*70)
    print("EJEMPLO COMPLETADO")
    print("="*70)


if __name__ == "__main__":
    main()
