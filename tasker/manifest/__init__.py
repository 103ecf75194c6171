"""Declarative tasker.yaml manifests.

Usage:
    from tasker.manifest import parse_manifest_file, manifest_to_tasker
    tasker = manifest_to_tasker(parse_manifest_file('tasker.yaml'))

CLI:
    python -m tasker tasker.yaml
"""

from .parser import Manifest, parse_manifest_file, parse_manifest_string
from .converter import manifest_to_tasker, task_spec
from .runner import run_manifest, main

__all__ = [
    'Manifest',
    'parse_manifest_file',
    'parse_manifest_string',
    'manifest_to_tasker',
    'task_spec',
    'run_manifest',
    'main',
]
