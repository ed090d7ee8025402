from .memory import Memory, AsciiAccumulator

__all__ = ['Memory', 'AsciiAccumulator']
