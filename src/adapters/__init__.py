"""Adaptadores de I/O (HTTP, DNS-over-HTTPS, ficheros)."""
