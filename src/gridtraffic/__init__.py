"""
gridtraffic: simulación de tráfico sobre una grilla de calles con semáforos.
"""

__version__ = "0.1.0"
