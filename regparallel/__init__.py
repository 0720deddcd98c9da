import importlib.metadata as importlib_metadata

from .modules import analyze

__version__ = importlib_metadata.version(__name__)

__all__ = ["__version__", "analyze"]
