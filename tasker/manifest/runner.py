"""Manifest runner and command line entry point."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..engine import RunResult
from ..exceptions import ManifestParseError
from .converter import manifest_to_tasker
from .parser import parse_manifest_file


logger = logging.getLogger(__name__)


async def run_manifest(
    manifest_path: Union[str, Path],
    task_group: Optional[Sequence[str]] = None,
    live: bool = True,
    verbose: bool = False,
) -> RunResult:
    """Load a tasker.yaml, run its tasks and keep watching if live.

    When the reload endpoint comes up this coroutine only returns once
    it is cancelled (Ctrl-C); the endpoint and watchers are closed on
    the way out.

    Args:
        manifest_path: Path to the manifest
        task_group: Local task names to run instead of the whole list
        live: Honor the manifest's live setting
        verbose: Print progress information
    """
    manifest_path = Path(manifest_path)
    manifest = parse_manifest_file(manifest_path)
    tasker = manifest_to_tasker(manifest, live=live and not task_group)

    if verbose:
        print(f"Loaded {len(tasker.registry.task_names)} task(s) from {manifest_path}")

    names = [tasker.registry.task_name(n) for n in task_group] if task_group else None
    try:
        result = await tasker.run(names)
        if tasker.notifier.listening:
            print(f"Watching for changes (live reload on port {tasker.notifier.port}), "
                  "press Ctrl-C to stop")
            await asyncio.Event().wait()
    finally:
        await tasker.close()
    return result


def main(args: Optional[List[str]] = None) -> int:
    """CLI entry point.

    Usage:
        python -m tasker [options] [manifest]

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    import argparse

    parser = argparse.ArgumentParser(
        description='Run tasker build tasks from a manifest',
        prog='python -m tasker',
    )
    parser.add_argument(
        'manifest',
        nargs='?',
        default='tasker.yaml',
        help='Path to the manifest (default: tasker.yaml)',
    )
    parser.add_argument(
        '-t', '--task',
        action='append',
        default=[],
        help='Run only this task (repeatable); disables live reload',
    )
    parser.add_argument(
        '--no-live',
        action='store_true',
        help='Ignore the manifest live setting',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print progress information',
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Parse and show tasks without executing',
    )

    parsed = parser.parse_args(args)
    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        if parsed.dry_run:
            manifest = parse_manifest_file(parsed.manifest)
            tasker = manifest_to_tasker(manifest, live=False)
            print(f"Parsed {parsed.manifest}:")
            print(f"  App: {tasker.app.name} ({tasker.app.base})")
            print(f"  Destinations: {', '.join(tasker.dest_paths) or '(none)'}")
            print(f"  Tasks ({len(tasker.registry.task_names)}):")
            for name in tasker.registry.task_names:
                print(f"    - {name}")
            for glob, names in tasker.srcs.items():
                print(f"  {glob} -> {', '.join(names)}")
            return 0

        result = asyncio.run(run_manifest(
            parsed.manifest,
            task_group=parsed.task or None,
            live=not parsed.no_live,
            verbose=parsed.verbose,
        ))

        if result.succeeded:
            print(f"Completed {len(result.executed)} task(s)")
            return 0
        print(f"Failed: {', '.join(result.failed)}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        return 0
    except (FileNotFoundError, ManifestParseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if parsed.verbose:
            import traceback
            traceback.print_exc()
        return 1
