"""Core - modelos de dominio y monitoreo.

Estructura:
- domain/      → Observación canónica, estación, sensores, reporte parseado
- monitoring/  → Contadores de ingesta
"""
