"""
Publishing of artifacts to the release and snapshot roots.

There are two ways in. #Publisher.publish() serves build tools (Gradle,
Maven) that compute file names and metadata themselves and upload every
file with a PUT. #Publisher.deploy() serves direct API callers that send a
single file; the server computes the file name and maintains the metadata.
"""

from mavenbucket import coordinates
from mavenbucket import metadata as md
from mavenbucket.coordinates import MavenPath
from mavenbucket.errors import AlreadyExists, ConcurrentModification, MalformedPath, UnsupportedFileType
from mavenbucket.storage.base import ObjectStore, PreconditionFailed
from typing import *
import datetime
import logging
import mimetypes

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
  '.jar': 'application/java-archive',
  '.pom': 'application/xml',
  '.xml': 'application/xml',
  '.module': 'application/json',
  '.sha1': 'text/plain',
  '.sha256': 'text/plain',
  '.sha512': 'text/plain',
  '.md5': 'text/plain',
  '.asc': 'text/plain',
}


def content_type(file_name: str) -> str:
  for ext, mime in CONTENT_TYPES.items():
    if file_name.endswith(ext):
      return mime
  return mimetypes.guess_type(file_name)[0] or 'application/octet-stream'


def utcnow() -> datetime.datetime:
  return datetime.datetime.now(datetime.timezone.utc)


class Deployment(NamedTuple):
  root: str
  key: str
  version: str

  # Only set for snapshot deployments.
  timestamp: str = None
  build_number: int = None

  def to_json(self):
    return {
      'key': self.key,
      'version': self.version,
      'timestamp': self.timestamp,
      'buildNumber': self.build_number,
    }


class Publisher:
  """
  Stores uploads in the release and snapshot roots while enforcing release
  immutability and snapshot versioning.

  Args:
    releases: The store for the `releases` root.
    snapshots: The store for the `snapshots` root.
    clock: Returns the current time as an aware #datetime.datetime.
    max_attempts: How often #deploy() re-reads metadata after losing a
      race against a concurrent deployment.
  """

  def __init__(self, releases: ObjectStore, snapshots: ObjectStore,
               clock: Callable[[], datetime.datetime] = None, max_attempts: int = 3):
    self.releases = releases
    self.snapshots = snapshots
    self.clock = clock or utcnow
    self.max_attempts = max_attempts

  def store(self, root: str) -> ObjectStore:
    return self.releases if root == coordinates.RELEASES else self.snapshots

  def _put(self, store, key, data, **kwargs):
    store.put(key, data, content_type(key), **kwargs)
    logger.info('Uploaded: %s (%d bytes)', key, len(data))

  def _put_with_checksums(self, store, key, data):
    self._put(store, key, data)
    self._put_checksums(store, key, data)

  def _put_checksums(self, store, key, data):
    for algorithm, digest in md.checksums(data).items():
      self._put(store, key + '.' + algorithm, digest.encode('ascii'))

  # Build-tool path

  def publish(self, path: MavenPath, data: bytes) -> str:
    """
    Stores a file uploaded by a build tool at the key given by *path*.

    Primary release files are immutable: if the exact key exists, the upload
    is rejected. Checksums, signatures and metadata may be uploaded
    repeatedly. Snapshot files are stored exactly as uploaded, the client
    has already computed the timestamped file name.

    Raises:
      AlreadyExists: If a primary release file already exists.
      MalformedPath: If a snapshot file is uploaded to a non-snapshot version.
      StorageUnavailable:
    Returns:
      The key the file was stored at.
    """

    store = self.store(path.root)

    if path.root == coordinates.RELEASES:
      if coordinates.is_primary(path.file_name) and store.head(path.key):
        raise AlreadyExists('{} already exists in version {}'.format(path.file_name, path.version))
    elif not path.is_artifact_metadata:
      if not coordinates.is_snapshot_version(path.version) and not coordinates.is_metadata(path.file_name):
        raise MalformedPath('Snapshot version must end with {}'.format(coordinates.SNAPSHOT_SUFFIX))

    self._put(store, path.key, data)
    return path.key

  # API path

  def deploy(self, group_id: str, artifact_id: str, version: str,
             extension: str, data: bytes, classifier: str = None) -> Deployment:
    """
    Deploys a single file and updates the metadata. Versions ending in
    `-SNAPSHOT` go to the snapshots root with a server-computed timestamped
    file name, everything else goes to the releases root.

    Raises:
      MalformedPath: If a coordinate is empty or contains invalid characters.
      UnsupportedFileType: If the extension is not accepted.
      AlreadyExists: If the release file already exists.
      ConcurrentModification: If the metadata kept changing underneath.
      StorageUnavailable:
    """

    for value, what in ((group_id, 'group'), (artifact_id, 'artifact'),
                        (version, 'version'), (extension, 'extension')):
      coordinates.validate_segment(value, what)
    for part in group_id.split('.'):
      coordinates.validate_segment(part, 'group')
    if classifier is not None:
      coordinates.validate_segment(classifier, 'classifier')

    extension = extension.lstrip('.')
    if not coordinates.is_allowed('.' + extension) or not coordinates.is_primary('x.' + extension):
      raise UnsupportedFileType()

    if coordinates.is_snapshot_version(version):
      return self._deploy_snapshot(group_id, artifact_id, version, extension, data, classifier)
    return self._deploy_release(group_id, artifact_id, version, extension, data, classifier)

  def _deploy_release(self, group_id, artifact_id, version, extension, data, classifier):
    prefix = coordinates.group_path(group_id) + '/' + artifact_id
    name = coordinates.file_name(artifact_id, version, extension, classifier)
    key = '/'.join((prefix, version, name))
    if self.releases.head(key):
      raise AlreadyExists('{} already exists in version {}'.format(name, version))
    self._put_with_checksums(self.releases, key, data)
    self._update(self.releases, prefix + '/' + coordinates.METADATA_FILE, group_id, artifact_id,
      lambda meta: md.add_release_version(meta, version, self.clock()))
    return Deployment(coordinates.RELEASES, key, version)

  def _deploy_snapshot(self, group_id, artifact_id, version, extension, data, classifier):
    prefix = coordinates.group_path(group_id) + '/' + artifact_id
    version_meta_key = '/'.join((prefix, version, coordinates.METADATA_FILE))

    for attempt in range(self.max_attempts):
      current = self.snapshots.get(version_meta_key)
      if current is None:
        meta = md.Metadata(group_id, artifact_id, version)
      else:
        meta = md.parse_metadata(current.data)

      now = self.clock()
      snapshot = md.next_snapshot(meta.snapshot, now)
      value = coordinates.snapshot_value(version, snapshot.timestamp, snapshot.build_number)
      key = '/'.join((prefix, version, coordinates.file_name(artifact_id, value, extension, classifier)))

      # The object goes first, a crash before the metadata write leaves an
      # unreferenced file but never metadata that points to nothing. The key
      # must be new, a concurrent deployment may have computed the same one.
      try:
        self._put(self.snapshots, key, data, if_none_match=True)
      except PreconditionFailed:
        logger.warning('%s was taken by a concurrent deployment (attempt %d), retrying', key, attempt + 1)
        continue
      self._put_checksums(self.snapshots, key, data)

      meta = md.upsert_snapshot_version(meta, snapshot, extension, classifier, value, now)
      try:
        self._write_metadata(self.snapshots, version_meta_key, meta, current)
      except PreconditionFailed:
        logger.warning('Lost race on %s (attempt %d), retrying', version_meta_key, attempt + 1)
        # Only this attempt wrote to *key*, nobody else can reference it yet.
        self.snapshots.delete([key] + [key + '.' + x for x in md.CHECKSUM_ALGORITHMS])
        continue
      break
    else:
      raise ConcurrentModification()

    self._update(self.snapshots, prefix + '/' + coordinates.METADATA_FILE, group_id, artifact_id,
      lambda meta: md.add_snapshot_version(meta, version, self.clock()))
    return Deployment(coordinates.SNAPSHOTS, key, version, snapshot.timestamp, snapshot.build_number)

  def _write_metadata(self, store, key, meta, current):
    data = md.serialize_metadata(meta)
    if current is None:
      self._put(store, key, data, if_none_match=True)
    else:
      self._put(store, key, data, if_match=current.etag)
    for algorithm, digest in md.checksums(data).items():
      self._put(store, key + '.' + algorithm, digest.encode('ascii'))

  def _update(self, store, key, group_id, artifact_id, mutate):
    """
    Read-modify-write of the metadata document at *key* using conditional
    writes. Retries up to #max_attempts times.
    """

    for attempt in range(self.max_attempts):
      current = store.get(key)
      if current is None:
        meta = md.Metadata(group_id, artifact_id)
      else:
        meta = md.parse_metadata(current.data)
      try:
        self._write_metadata(store, key, mutate(meta), current)
      except PreconditionFailed:
        logger.warning('Lost race on %s (attempt %d), retrying', key, attempt + 1)
        continue
      return
    raise ConcurrentModification()
