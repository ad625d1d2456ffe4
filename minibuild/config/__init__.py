"""Configuration schema, loading and run options for minibuild."""

from minibuild.config.loader import load_build_file
from minibuild.config.options import DEFAULT_BUILD_FILE, BuildOptions
from minibuild.config.schema import BuildDefaults, BuildFileSpec, SourceSpec, TargetSpec

__all__ = [
    "BuildDefaults",
    "BuildFileSpec",
    "BuildOptions",
    "DEFAULT_BUILD_FILE",
    "SourceSpec",
    "TargetSpec",
    "load_build_file",
]
