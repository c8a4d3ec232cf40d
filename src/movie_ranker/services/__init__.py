from .versus import VersusService

__all__ = ["VersusService"]
