"""In-memory simulation of escrow, quadratic funding, to-do list and token pot contracts."""

__version__ = "0.1.0"
__all__ = ["chain", "escrow", "funding_model", "funding", "todo", "pot"]