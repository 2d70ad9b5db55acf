"""Servicios de orquestación (casos de uso)."""

from core.services.tire_lookup import TireLookupService

__all__ = ["TireLookupService"]
