"""Destination directories for built assets.

The resolver derives one output directory per virtual host of an
application, plus a single shared-assets directory. Destination objects
perform the actual writes so that local folders and S3 prefixes can sit
side by side in one fan-out.

Example:
    resolver = DestinationResolver(config, app)
    resolver.dest_paths   # ('/srv/site/public/sites/localhost',)
    resolver.share_path   # '/srv/site/public/assets/myapp'

    for dest in resolver.destinations(override='s3://cdn-bucket/myapp'):
        dest.write('js/app.js', b'...')
"""

import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

from .config import AppContext, TaskerConfig


DestinationSpec = Union[str, Sequence[str], None]


@dataclass
class Destination(ABC):
    """Base class for a place built files are written to.

    Relative paths are always '/'-separated and relative to the root.
    """

    @property
    @abstractmethod
    def key(self) -> str:
        """Return a printable identifier (path or URI) for this destination."""
        pass

    @abstractmethod
    def write(self, relpath: str, data: bytes, append: bool = False) -> str:
        """Write (or append) data under relpath, creating parents as needed.

        Returns:
            The full path/key that was written
        """
        pass

    @abstractmethod
    def copy_from(self, source: str, relpath: str) -> str:
        """Copy a local file to relpath under this destination.

        Returns:
            The full path/key that was written
        """
        pass


@dataclass
class LocalDestination(Destination):
    """A directory on the local filesystem."""
    root: str

    @property
    def key(self) -> str:
        return self.root

    def _target(self, relpath: str) -> Path:
        target = Path(self.root) / relpath.lstrip('/') if relpath else Path(self.root)
        target.parent.mkdir(parents=True, exist_ok=True)
        return target

    def write(self, relpath: str, data: bytes, append: bool = False) -> str:
        target = self._target(relpath)
        with open(target, 'ab' if append else 'wb') as f:
            f.write(data)
        return str(target)

    def copy_from(self, source: str, relpath: str) -> str:
        target = self._target(relpath)
        shutil.copyfile(source, target)
        return str(target)


@dataclass
class S3Destination(Destination):
    """A key prefix inside an S3 bucket (requires boto3).

    Example:
        S3Destination("cdn-bucket", "sites/localhost", profile="dev")
    """
    bucket: str
    prefix: str = ""
    profile: Optional[str] = None
    region: Optional[str] = None
    _client: Any = field(init=False, repr=False, default=None, compare=False)

    @property
    def key(self) -> str:
        return f"s3://{self.bucket}/{self.prefix}".rstrip('/')

    def _get_client(self):
        """Lazy-load boto3 and create S3 client."""
        if self._client is None:
            try:
                import boto3
            except ImportError:
                raise ImportError(
                    "boto3 required for S3Destination. Install: pip install boto3"
                )
            session_kwargs = {}
            if self.profile:
                session_kwargs['profile_name'] = self.profile
            if self.region:
                session_kwargs['region_name'] = self.region
            self._client = boto3.Session(**session_kwargs).client('s3')
        return self._client

    def object_key(self, relpath: str) -> str:
        """Join the prefix and a relative path into an object key."""
        parts = [p.strip('/') for p in (self.prefix, relpath) if p.strip('/')]
        return '/'.join(parts)

    def write(self, relpath: str, data: bytes, append: bool = False) -> str:
        client = self._get_client()
        key = self.object_key(relpath)
        if append:
            try:
                existing = client.get_object(Bucket=self.bucket, Key=key)['Body'].read()
            except client.exceptions.NoSuchKey:
                existing = b''
            data = existing + data
        client.put_object(Bucket=self.bucket, Key=key, Body=data)
        return f"s3://{self.bucket}/{key}"

    def copy_from(self, source: str, relpath: str) -> str:
        key = self.object_key(relpath)
        self._get_client().upload_file(source, self.bucket, key)
        return f"s3://{self.bucket}/{key}"


def destination_for(spec: str) -> Destination:
    """Create a Destination from a path or an s3://bucket/prefix URI."""
    if spec.startswith('s3://'):
        bucket, _, prefix = spec[5:].partition('/')
        return S3Destination(bucket, prefix.rstrip('/'))
    return LocalDestination(spec)


def normalize_spec(spec: DestinationSpec) -> Tuple[str, ...]:
    """Turn a single path, a sequence of paths or None into a tuple."""
    if spec is None:
        return ()
    if isinstance(spec, str):
        return (spec,)
    return tuple(spec)


class DestinationResolver:
    """Derive output directories for one application.

    One directory per vhost lives under <root>/public/sites; the shared
    assets directory is <root>/public/assets/<app name>. An application
    without vhosts resolves to an empty set unless the caller overrides.
    """

    SITES_DIR = 'public/sites'
    ASSETS_DIR = 'public/assets'

    def __init__(self, config: TaskerConfig, app: AppContext):
        self.config = config
        self.app = app
        root = config.path.rstrip('/')
        self._dest_paths = tuple(
            f"{root}/{self.SITES_DIR}/{host}" for host in app.vhosts
        )
        self._share_path = f"{root}/{self.ASSETS_DIR}/{app.name}"

    @property
    def dest_paths(self) -> Tuple[str, ...]:
        """One absolute directory per vhost, in vhost order."""
        return self._dest_paths

    @property
    def share_path(self) -> str:
        """The shared-assets directory for this application."""
        return self._share_path

    def resolve(self, override: DestinationSpec = None) -> Tuple[str, ...]:
        """Return the override when given, otherwise the vhost directories."""
        explicit = normalize_spec(override)
        if explicit:
            return explicit
        return self._dest_paths

    def resolve_share(self) -> Tuple[str, ...]:
        """Always exactly one path, independent of vhosts."""
        return (self._share_path,)

    def destinations(self, override: DestinationSpec = None) -> List[Destination]:
        """Resolve and wrap each path in a Destination."""
        return [destination_for(path) for path in self.resolve(override)]
