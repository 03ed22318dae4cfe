"""
Utilidades: configuración, logging y métricas.
"""
