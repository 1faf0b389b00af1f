"""Dependency closure and auto-grouping of shared dependencies."""

from bundlr.core.dependencies.autogroup import AutoGrouper, AutoGroupResult
from bundlr.core.dependencies.protocols import DependencyScanner
from bundlr.core.dependencies.resolver import DependencyResolver
from bundlr.core.dependencies.scanners import MappingDependencyScanner, NullDependencyScanner

__all__ = [
    "AutoGroupResult",
    "AutoGrouper",
    "DependencyResolver",
    "DependencyScanner",
    "MappingDependencyScanner",
    "NullDependencyScanner",
]
