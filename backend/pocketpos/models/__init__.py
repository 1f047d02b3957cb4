from .state import StateEntry

__all__ = ['StateEntry']
