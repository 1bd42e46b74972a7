"""Bytecoding - schema-driven binary codecs for Python."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bytecoding")
except PackageNotFoundError:
    __version__ = "(local)"
