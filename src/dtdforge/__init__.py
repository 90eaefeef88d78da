"""dtdforge package entry."""

from importlib.metadata import version

__all__ = ["__version__"]

try:
    __version__ = version("dtdforge")
except Exception:  # fallback for editable installs before metadata exists
    __version__ = "0.1.0"
