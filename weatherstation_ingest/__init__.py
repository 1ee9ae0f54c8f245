"""Ingesta de telemetría de estaciones meteorológicas."""
