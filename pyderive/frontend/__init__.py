"""
Frontend
- expands path specifications into package directories
- loads and parses the Python source units of those packages
- lazily loads further modules reachable through imports, so the type model can see types defined elsewhere
"""

from .source import SourceFile, PackageDir, SourceSet, load, expand_path_specs, find_root_dir

__all__ = [
    'SourceFile',
    'PackageDir',
    'SourceSet',
    'load',
    'expand_path_specs',
    'find_root_dir'
]
