"""Manifest parsing and validation for tasker.yaml files.

Example tasker.yaml:
    config:
      path: ../..
      testing: false

    app:
      name: myapp
      base: .
      vhost: [localhost]

    tasks:
      - name: css
        sources: "client/**/*.less"
        stages:
          - "lessc -"
          - rename: {suffix: .css}
          - concat: site.css
      - name: images
        copy: {from: "static/*.png", to: "img/*"}
      - name: lint
        command: "eslint client"

    compile: {}
    live: 9999
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..exceptions import ManifestParseError


TASK_KINDS = ('sources', 'copy', 'command')
STAGE_KINDS = ('shell', 'concat', 'rename', 'dest')


@dataclass
class Manifest:
    """Parsed manifest."""
    config: Dict[str, Any] = field(default_factory=dict)
    app: Dict[str, Any] = field(default_factory=dict)
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    compile: Optional[Dict[str, Any]] = None
    live: Optional[int] = None
    path: Optional[Path] = None


def parse_manifest_file(path: Union[str, Path]) -> Manifest:
    """Parse and validate a tasker.yaml file.

    Raises:
        ManifestParseError: If the file is invalid or missing required fields
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Manifest not found: {path}")

    with open(path) as f:
        manifest = _load(f)
    manifest.path = path
    return manifest


def parse_manifest_string(content: str) -> Manifest:
    """Parse manifest content from a string."""
    return _load(content)


def _load(stream: Any) -> Manifest:
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        raise ManifestParseError(f"Invalid YAML syntax: {e}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ManifestParseError("Manifest root must be a mapping")

    return _validate_manifest_data(data)


def _validate_manifest_data(data: Dict[str, Any]) -> Manifest:
    config = data.get('config', {})
    if not isinstance(config, dict):
        raise ManifestParseError("'config' must be a mapping")
    if 'path' not in config:
        raise ManifestParseError("'config' missing required field 'path'")

    app = data.get('app')
    if not isinstance(app, dict):
        raise ManifestParseError("'app' must be a mapping")
    for key in ('name', 'base'):
        if not isinstance(app.get(key), str):
            raise ManifestParseError(f"'app' missing required string field '{key}'")
    vhost = app.get('vhost')
    if vhost is not None and not isinstance(vhost, (str, list)):
        raise ManifestParseError("'app.vhost' must be a string or a list")

    tasks = data.get('tasks', [])
    if not isinstance(tasks, list):
        raise ManifestParseError("'tasks' must be a list")
    validated_tasks = [_validate_task(t, i) for i, t in enumerate(tasks)]

    compile_opts = data.get('compile')
    if compile_opts is True:
        compile_opts = {}
    elif compile_opts is False:
        compile_opts = None
    elif compile_opts is not None and not isinstance(compile_opts, dict):
        raise ManifestParseError("'compile' must be a mapping or a boolean")

    return Manifest(
        config=config,
        app=app,
        tasks=validated_tasks,
        compile=compile_opts,
        live=_validate_live(data.get('live')),
    )


def _validate_live(live: Any) -> Optional[int]:
    if live is None or live is False:
        return None
    if live is True:
        from ..reload import DEFAULT_PORT
        return DEFAULT_PORT
    if isinstance(live, int):
        return live
    raise ManifestParseError("'live' must be a boolean or a port number")


def _validate_task(task: Any, index: int) -> Dict[str, Any]:
    """Validate a single task definition.

    Raises:
        ManifestParseError: If validation fails
    """
    if not isinstance(task, dict):
        raise ManifestParseError(f"Task {index} must be a mapping")

    if 'name' not in task:
        raise ManifestParseError(f"Task {index} missing required field 'name'")
    if not isinstance(task['name'], str):
        raise ManifestParseError(f"Task {index}: 'name' must be a string")
    name = task['name']

    kinds = [k for k in TASK_KINDS if k in task]
    if len(kinds) != 1:
        raise ManifestParseError(
            f"Task '{name}' must define exactly one of: {', '.join(TASK_KINDS)}"
        )
    kind = kinds[0]

    if kind == 'sources':
        sources = task['sources']
        if not isinstance(sources, (str, list)):
            raise ManifestParseError(f"Task '{name}': 'sources' must be a string or a list")
        stages = task.get('stages', [])
        if not isinstance(stages, list):
            raise ManifestParseError(f"Task '{name}': 'stages' must be a list")
        for i, stage in enumerate(stages):
            _validate_stage(stage, name, i)

    elif kind == 'copy':
        copy = task['copy']
        if not isinstance(copy, dict) or 'from' not in copy or 'to' not in copy:
            raise ManifestParseError(f"Task '{name}': 'copy' needs 'from' and 'to'")

    elif kind == 'command':
        if not isinstance(task['command'], (str, list)):
            raise ManifestParseError(f"Task '{name}': 'command' must be a string or a list")

    deps = task.get('deps', [])
    if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
        raise ManifestParseError(f"Task '{name}': 'deps' must be a list of names")
    if deps and kind == 'sources':
        raise ManifestParseError(f"Task '{name}': pipe tasks cannot declare 'deps'")

    return task


def _validate_stage(stage: Any, task_name: str, index: int) -> None:
    if isinstance(stage, str):
        # Short form: a shell command
        return

    if not isinstance(stage, dict) or len(stage) != 1:
        raise ManifestParseError(
            f"Task '{task_name}': stage {index} must be a string or a single-key mapping"
        )

    kind = next(iter(stage))
    if kind not in STAGE_KINDS:
        raise ManifestParseError(
            f"Task '{task_name}': stage {index} has invalid type '{kind}'. "
            f"Valid types: {', '.join(STAGE_KINDS)}"
        )
    if kind == 'rename' and not isinstance(stage['rename'], dict):
        raise ManifestParseError(
            f"Task '{task_name}': stage {index} 'rename' must be a mapping"
        )
