"""Working-copy overlays over a source model, with conflict-checked commits."""

__all__ = [
    "buffer",
    "delta",
    "model",
    "operations",
    "runtime",
    "status",
    "store",
]

__version__ = "0.1.0"
