"""
Reading, updating and writing `maven-metadata.xml` documents.

The same #Metadata type represents artifact-level documents (versions,
`latest` and `release` pointers) and version-level documents of snapshot
versions (the current timestamp/build-number pair and one `snapshotVersion`
entry per file). All functions are pure, updates return a new #Metadata.
"""

from mavenbucket.errors import InvalidMetadata
from defusedxml import DefusedXmlException
from typing import *
import defusedxml.ElementTree
import datetime
import functools
import hashlib
import re
import xml.etree.ElementTree as etree

TIMESTAMP_FORMAT = '%Y%m%d.%H%M%S'
LAST_UPDATED_FORMAT = '%Y%m%d%H%M%S'
CHECKSUM_ALGORITHMS = ('md5', 'sha1', 'sha256', 'sha512')


class Snapshot(NamedTuple):
  timestamp: str
  build_number: int


class SnapshotVersion(NamedTuple):
  extension: str
  value: str
  updated: str
  classifier: Optional[str] = None


class Metadata(NamedTuple):
  group_id: str
  artifact_id: str
  version: Optional[str] = None
  versions: Tuple[str, ...] = ()
  latest: Optional[str] = None
  release: Optional[str] = None
  last_updated: Optional[str] = None
  snapshot: Optional[Snapshot] = None
  snapshot_versions: Tuple[SnapshotVersion, ...] = ()


def _local(tag):
  return tag.rpartition('}')[2]


def _children(element, name):
  """
  Returns all direct children with the local name *name* as a list. This is
  the one-or-many normalization, callers never see a scalar.
  """

  if element is None:
    return []
  return [x for x in element if _local(x.tag) == name]


def _child(element, name):
  children = _children(element, name)
  return children[0] if children else None


def _text(element, name):
  child = _child(element, name)
  if child is None or child.text is None:
    return None
  return child.text.strip() or None


def parse_metadata(data: Union[bytes, str]) -> Metadata:
  """
  Parses a `maven-metadata.xml` document.

  Raises:
    InvalidMetadata: If the document is not well-formed XML or not a
      metadata document.
  """

  try:
    root = defusedxml.ElementTree.fromstring(data)
  except (etree.ParseError, DefusedXmlException) as exc:
    raise InvalidMetadata('Invalid maven-metadata.xml ({})'.format(exc))
  if _local(root.tag) != 'metadata':
    raise InvalidMetadata('Invalid maven-metadata.xml (root element is <{}>)'.format(_local(root.tag)))

  versioning = _child(root, 'versioning')
  versions = tuple(
    x.text.strip() for x in _children(_child(versioning, 'versions'), 'version')
    if x.text and x.text.strip())

  snapshot = None
  snapshot_el = _child(versioning, 'snapshot')
  if snapshot_el is not None:
    timestamp = _text(snapshot_el, 'timestamp')
    build_number = _text(snapshot_el, 'buildNumber')
    if timestamp and build_number:
      try:
        snapshot = Snapshot(timestamp, int(build_number))
      except ValueError:
        raise InvalidMetadata('Invalid maven-metadata.xml (buildNumber {!r})'.format(build_number))

  snapshot_versions = []
  for el in _children(_child(versioning, 'snapshotVersions'), 'snapshotVersion'):
    snapshot_versions.append(SnapshotVersion(
      extension=_text(el, 'extension') or '',
      value=_text(el, 'value') or '',
      updated=_text(el, 'updated') or '',
      classifier=_text(el, 'classifier')))

  return Metadata(
    group_id=_text(root, 'groupId'),
    artifact_id=_text(root, 'artifactId'),
    version=_text(root, 'version'),
    versions=versions,
    latest=_text(versioning, 'latest'),
    release=_text(versioning, 'release'),
    last_updated=_text(versioning, 'lastUpdated'),
    snapshot=snapshot,
    snapshot_versions=tuple(snapshot_versions))


def serialize_metadata(meta: Metadata) -> bytes:
  """
  Serializes *meta* to the canonical `maven-metadata.xml` shape. Elements
  without a value are omitted.
  """

  def add(parent, name, text=None):
    el = etree.SubElement(parent, name)
    if text is not None:
      el.text = str(text)
    return el

  root = etree.Element('metadata')
  if meta.group_id:
    add(root, 'groupId', meta.group_id)
  if meta.artifact_id:
    add(root, 'artifactId', meta.artifact_id)
  if meta.version:
    add(root, 'version', meta.version)

  versioning = add(root, 'versioning')
  if meta.snapshot:
    snapshot = add(versioning, 'snapshot')
    add(snapshot, 'timestamp', meta.snapshot.timestamp)
    add(snapshot, 'buildNumber', meta.snapshot.build_number)
  if meta.last_updated:
    add(versioning, 'lastUpdated', meta.last_updated)
  if meta.snapshot_versions:
    container = add(versioning, 'snapshotVersions')
    for sv in meta.snapshot_versions:
      el = add(container, 'snapshotVersion')
      if sv.classifier:
        add(el, 'classifier', sv.classifier)
      add(el, 'extension', sv.extension)
      add(el, 'value', sv.value)
      add(el, 'updated', sv.updated)
  if meta.versions:
    container = add(versioning, 'versions')
    for version in meta.versions:
      add(container, 'version', version)
  if meta.latest:
    add(versioning, 'latest', meta.latest)
  if meta.release:
    add(versioning, 'release', meta.release)

  etree.indent(root, space='  ')
  return etree.tostring(root, encoding='UTF-8', xml_declaration=True) + b'\n'


def format_timestamp(now: datetime.datetime) -> str:
  return now.astimezone(datetime.timezone.utc).strftime(TIMESTAMP_FORMAT)


def format_last_updated(now: datetime.datetime) -> str:
  return now.astimezone(datetime.timezone.utc).strftime(LAST_UPDATED_FORMAT)


def next_snapshot(existing: Optional[Snapshot], now: datetime.datetime) -> Snapshot:
  """
  Computes the timestamp and build number for the next snapshot build. A
  build in the same timestamp bucket (UTC second) as the *existing* one
  increments its build number, any other timestamp starts over at 1.
  """

  timestamp = format_timestamp(now)
  if existing is not None and existing.timestamp == timestamp:
    return Snapshot(timestamp, existing.build_number + 1)
  return Snapshot(timestamp, 1)


def _add_version(meta, version):
  if version in meta.versions:
    return meta.versions
  return meta.versions + (version,)


def add_release_version(meta: Metadata, version: str, now: datetime.datetime) -> Metadata:
  """
  Adds a newly published release *version*. It always becomes `latest` and
  `release`, no version comparison is performed.
  """

  return meta._replace(
    versions=_add_version(meta, version),
    latest=version,
    release=version,
    last_updated=format_last_updated(now))


def add_snapshot_version(meta: Metadata, version: str, now: datetime.datetime) -> Metadata:
  """
  Adds a `-SNAPSHOT` *version* to artifact-level metadata. It becomes
  `latest`, `release` is left untouched.
  """

  return meta._replace(
    versions=_add_version(meta, version),
    latest=version,
    last_updated=format_last_updated(now))


def upsert_snapshot_version(meta: Metadata, snapshot: Snapshot, extension: str,
                            classifier: Optional[str], value: str,
                            now: datetime.datetime) -> Metadata:
  """
  Records a new snapshot build in version-level metadata. The
  `snapshotVersion` entry with the same `(extension, classifier)` is
  replaced, other entries are kept.
  """

  classifier = classifier or None
  entry = SnapshotVersion(extension, value, format_last_updated(now), classifier)
  entries = [x for x in meta.snapshot_versions
             if (x.extension, x.classifier) != (extension, classifier)]
  entries.append(entry)
  return meta._replace(
    snapshot=snapshot,
    snapshot_versions=tuple(entries),
    last_updated=entry.updated)


def checksums(data: bytes) -> Dict[str, str]:
  """
  Returns the hex digests that Maven clients look for next to a file.
  """

  return {x: hashlib.new(x, data).hexdigest() for x in CHECKSUM_ALGORITHMS}


_COMPONENT_RE = re.compile(r'^(\d*)(.*)$', re.S)


def _component_key(component):
  # Numeric part first. A component without a qualifier ranks above the same
  # number with a qualifier (1.0 > 1.0-beta), qualifiers compare as strings.
  digits, qualifier = _COMPONENT_RE.match(component).groups()
  return (int(digits) if digits else 0, 0 if qualifier else 1, qualifier)


def version_key(version: str) -> Tuple:
  """
  Comparison key of a version string. Build metadata after `+` is ignored.
  Missing trailing components compare as 0.
  """

  keys = [_component_key(x) for x in version.partition('+')[0].split('.')]
  while keys and keys[-1] == (0, 1, ''):
    keys.pop()
  return tuple(keys)


def compare_versions(a: str, b: str) -> int:
  ka, kb = version_key(a), version_key(b)
  zero = (0, 1, '')
  for i in range(max(len(ka), len(kb))):
    x = ka[i] if i < len(ka) else zero
    y = kb[i] if i < len(kb) else zero
    if x != y:
      return -1 if x < y else 1
  return 0


def sort_versions(versions: Iterable[str], reverse: bool = True) -> List[str]:
  """
  Sorts versions by their numeric components, highest first by default.
  """

  return sorted(versions, key=functools.cmp_to_key(compare_versions), reverse=reverse)
