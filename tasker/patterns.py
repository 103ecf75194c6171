"""Glob helpers shared by the registry, the pipeline and the watcher.

Pattern syntax:
- * - any run of non-slash characters
- ** - any number of directories (including none when followed by /)
- ? - one non-slash character
- {a,b} - alternation

Example:
    absolute_src("client/**/*.less", "/srv/apps/web")
    # ['/srv/apps/web/client/**/*.less']

    static_prefix("/srv/apps/web/client/**/*.less")
    # '/srv/apps/web/client'
"""

import glob as globlib
import os
import re
from typing import Iterable, List, Sequence, Tuple, Union


_WILDCARD_CHARS = set('*?[{')
_LEADING_RELATIVE = re.compile(r'^(?:\./|/)')


def absolute_src(globs: Union[str, Sequence[str]], base: str) -> List[str]:
    """Convert relative globs into absolute globs under base.

    A leading "./" or "/" is always stripped and replaced by the base,
    so "/x" is treated as app-relative, not filesystem-absolute.
    """
    if isinstance(globs, str):
        globs = [globs]
    base = base.rstrip('/')
    return [base + '/' + _LEADING_RELATIVE.sub('', g, count=1) for g in globs]


def has_wildcard(segment: str) -> bool:
    """Return True if a path segment contains glob syntax."""
    return any(c in _WILDCARD_CHARS for c in segment)


def static_prefix(pattern: str) -> str:
    """Extract the directory portion before the first wildcard segment.

    Examples:
        "/a/client/**/*.less" -> "/a/client"
        "/a/*.js" -> "/a"
        "/a/b/file.js" -> "/a/b"
    """
    parts = pattern.split('/')
    static: List[str] = []
    # The last segment is a file name even when it has no wildcard
    for part in parts[:-1]:
        if has_wildcard(part):
            break
        static.append(part)
    prefix = '/'.join(static)
    if not prefix and pattern.startswith('/'):
        return '/'
    return prefix


def is_recursive(pattern: str) -> bool:
    """Return True if matches may live below the static prefix directory."""
    remainder = pattern[len(static_prefix(pattern)):].lstrip('/')
    return '/' in remainder


def _translate(pattern: str) -> str:
    """Translate glob syntax to a regex body."""
    out: List[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if pattern.startswith('**/', i):
            out.append('(?:.*/)?')
            i += 3
        elif pattern.startswith('**', i):
            out.append('.*')
            i += 2
        elif c == '*':
            out.append('[^/]*')
            i += 1
        elif c == '?':
            out.append('[^/]')
            i += 1
        elif c == '[':
            end = pattern.find(']', i + 1)
            if end == -1:
                out.append(re.escape(c))
                i += 1
            else:
                body = pattern[i + 1:end]
                if body.startswith('!'):
                    body = '^' + body[1:]
                out.append(f'[{body}]')
                i = end + 1
        elif c == '{':
            end = pattern.find('}', i + 1)
            if end == -1:
                out.append(re.escape(c))
                i += 1
            else:
                options = pattern[i + 1:end].split(',')
                out.append('(?:' + '|'.join(_translate(o) for o in options) + ')')
                i = end + 1
        else:
            out.append(re.escape(c))
            i += 1
    return ''.join(out)


def compile_glob(pattern: str) -> 're.Pattern[str]':
    """Compile a glob into an anchored regex matching absolute paths."""
    return re.compile('^' + _translate(pattern) + '$')


def _expand_braces(pattern: str) -> List[str]:
    """Expand the first {a,b} group recursively (glob.glob has no braces)."""
    start = pattern.find('{')
    end = pattern.find('}', start + 1) if start != -1 else -1
    if start == -1 or end == -1:
        return [pattern]
    head, body, tail = pattern[:start], pattern[start + 1:end], pattern[end + 1:]
    expanded: List[str] = []
    for option in body.split(','):
        expanded.extend(_expand_braces(head + option + tail))
    return expanded


def expand(globs: Iterable[str]) -> List[Tuple[str, str]]:
    """List files matching the globs.

    Returns:
        (path, base) pairs in glob order, without duplicates, where base is
        the static prefix of the glob that first matched the path
    """
    seen = set()
    results: List[Tuple[str, str]] = []
    for pattern in globs:
        base = static_prefix(pattern)
        for variant in _expand_braces(pattern):
            for path in sorted(globlib.glob(variant, recursive=True)):
                if path in seen or not os.path.isfile(path):
                    continue
                seen.add(path)
                results.append((path, base))
    return results
