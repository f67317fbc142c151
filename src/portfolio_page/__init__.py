"""portfolio-page: static portfolio page from GitHub and ORCID."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("portfolio-page")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
