"""Analysis engine and dependency resolver contracts with lexical defaults."""

from .base import AnalysisEngine, DependencyResolver, Diagnostic, EngineFactory, ResolverHost
from .lexical import LexicalEngine
from .resolver import DEFAULT_EXTENSIONS, DirectiveResolver

__all__ = [
    "AnalysisEngine",
    "DEFAULT_EXTENSIONS",
    "DependencyResolver",
    "Diagnostic",
    "DirectiveResolver",
    "EngineFactory",
    "LexicalEngine",
    "ResolverHost",
]
