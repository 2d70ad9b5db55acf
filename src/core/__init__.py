"""Core GDSO TIS: dominio, resiliencia, configuración y servicios."""
