"""API de ingesta: adapters de protocolo, reconciliación de sensores y persistencia."""
