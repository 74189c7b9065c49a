"""Exportable resources and their registry."""

from viewexport.resources.catalog import BUILTIN_RESOURCES, default_registry
from viewexport.resources.registry import ArtifactSink, Resource, ResourceRegistry
from viewexport.resources.sql import SqlResource, render_json_array, write_atomic

__all__ = [
    "ArtifactSink",
    "BUILTIN_RESOURCES",
    "Resource",
    "ResourceRegistry",
    "SqlResource",
    "default_registry",
    "render_json_array",
    "write_atomic",
]
