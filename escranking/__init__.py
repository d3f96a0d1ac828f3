"""Song contest prediction game: a ranking API, scoring and an admin console."""

__version__ = "0.1.0"
__all__ = ["__version__"]