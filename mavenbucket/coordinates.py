"""
Parsing of Maven repository paths into coordinates.

A path has the form `/{root}/{group/path}/{artifactId}/{version}/{fileName}`
where the root is either `releases` or `snapshots`. The artifact-level
metadata of a snapshot artifact is addressed with one segment less, as
`/snapshots/{group/path}/{artifactId}/maven-metadata.xml`.
"""

from mavenbucket.errors import MalformedPath, UnsupportedFileType
from typing import *

RELEASES = 'releases'
SNAPSHOTS = 'snapshots'
ROOTS = (RELEASES, SNAPSHOTS)

METADATA_FILE = 'maven-metadata.xml'
SNAPSHOT_SUFFIX = '-SNAPSHOT'

CHECKSUM_EXTENSIONS = ('.sha1', '.sha256', '.sha512', '.md5')
SIGNATURE_EXTENSIONS = ('.asc',)
ALLOWED_EXTENSIONS = ('.jar', '.pom', '.module', '.xml') + CHECKSUM_EXTENSIONS + SIGNATURE_EXTENSIONS


class MavenPath(NamedTuple):
  root: str
  group_path: str
  artifact_id: str

  # #None for artifact-level metadata files.
  version: Optional[str]

  file_name: str

  @property
  def group_id(self) -> str:
    return group_id(self.group_path)

  @property
  def is_artifact_metadata(self) -> bool:
    return self.version is None

  @property
  def key(self) -> str:
    """
    The object key inside the root.
    """

    if self.version is None:
      return '/'.join((self.group_path, self.artifact_id, self.file_name))
    return '/'.join((self.group_path, self.artifact_id, self.version, self.file_name))


def group_path(group_id: str) -> str:
  """
  Converts a dotted group ID to the slash-delimited path form.
  """

  return group_id.replace('.', '/')


def group_id(group_path: str) -> str:
  return group_path.strip('/').replace('/', '.')


def is_checksum(file_name: str) -> bool:
  return file_name.endswith(CHECKSUM_EXTENSIONS)


def is_signature(file_name: str) -> bool:
  return file_name.endswith(SIGNATURE_EXTENSIONS)


def is_metadata(file_name: str) -> bool:
  """
  Matches `maven-metadata.xml` and its checksum and signature files.
  """

  return file_name.startswith('maven-metadata')


def is_primary(file_name: str) -> bool:
  """
  Returns #True for files that make up the artifact itself, ie. everything
  but checksums, signatures and metadata.
  """

  return not (is_checksum(file_name) or is_signature(file_name) or is_metadata(file_name))


def is_allowed(file_name: str) -> bool:
  return file_name.endswith(ALLOWED_EXTENSIONS)


def is_snapshot_version(version: str) -> bool:
  return version.endswith(SNAPSHOT_SUFFIX)


def base_version(version: str) -> str:
  """
  Strips the `-SNAPSHOT` suffix from *version*.
  """

  if is_snapshot_version(version):
    return version[:-len(SNAPSHOT_SUFFIX)]
  return version


def file_name(artifact_id: str, version: str, extension: str,
              classifier: str = None) -> str:
  """
  Builds the Maven file name `{artifactId}-{version}[-{classifier}].{ext}`.
  """

  name = '{}-{}'.format(artifact_id, version)
  if classifier:
    name += '-' + classifier
  return name + '.' + extension.lstrip('.')


def snapshot_value(version: str, timestamp: str, build_number: int) -> str:
  """
  The timestamped version that replaces `-SNAPSHOT`, eg.
  `1.0-20240101.120000-3`.
  """

  return '{}-{}-{}'.format(base_version(version), timestamp, build_number)


def validate_segment(segment: str, what: str = 'path segment'):
  if not segment or segment in ('.', '..') or '/' in segment or '\\' in segment:
    raise MalformedPath('Invalid {}: {!r}'.format(what, segment))


def parse_path(path: str) -> MavenPath:
  """
  Parses a repository path into a #MavenPath.

  Raises:
    MalformedPath: If the path does not have the expected shape.
    UnsupportedFileType: If the file extension is not accepted.
  """

  parts = path.strip('/').split('/')
  if not parts or parts[0] not in ROOTS:
    raise MalformedPath('Invalid repository path')
  root, parts = parts[0], parts[1:]
  for part in parts:
    validate_segment(part)

  name = parts[-1] if parts else ''
  if root == SNAPSHOTS and len(parts) == 3 and is_metadata(name):
    if not is_allowed(name):
      raise UnsupportedFileType()
    return MavenPath(root, parts[0], parts[1], None, name)

  if len(parts) < 4:
    raise MalformedPath()
  if not is_allowed(name):
    raise UnsupportedFileType()

  return MavenPath(
    root=root,
    group_path='/'.join(parts[:-3]),
    artifact_id=parts[-3],
    version=parts[-2],
    file_name=name)
