from .crud import ResourceController

__all__ = ["ResourceController"]
