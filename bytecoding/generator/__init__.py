"""Bytecoding schema compiler."""

from .compiler import compile_schema as compile_schema
from .parser import ResolutionError as ResolutionError
from .parser import ValidationError as ValidationError
from .parser import parse as parse
from .types import *
