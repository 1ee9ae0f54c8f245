"""Infraestructura: acceso a base de datos."""
