"""
Read-only queries over the group/artifact/version hierarchy of a root. The
hierarchy does not exist in the store, it is derived from delimited prefix
listings and the presence of `maven-metadata.xml` files.
"""

from mavenbucket import coordinates
from mavenbucket import metadata as md
from mavenbucket.errors import InvalidMetadata, NotDeterminable, NotFound
from mavenbucket.storage.base import ObjectStore, iter_list
from typing import *


class Catalog:

  def __init__(self, store: ObjectStore):
    self.store = store

  def _children(self, prefix):
    """
    Yields the names of the direct child "directories" of *prefix*.
    """

    for page in iter_list(self.store, prefix, '/'):
      for child in page.prefixes:
        name = child[len(prefix):].rstrip('/')
        if name and not name.startswith('.'):
          yield name

  def _path(self, group_id, *parts):
    """
    Builds a key prefix from a dotted group ID and further path segments.

    Raises:
      MalformedPath: If a segment is empty or contains a path separator.
    """

    segments = group_id.split('.') + list(parts)
    for segment in segments:
      coordinates.validate_segment(segment)
    return '/'.join(segments)

  def _read_metadata(self, group_id, artifact_id):
    key = self._path(group_id, artifact_id, coordinates.METADATA_FILE)
    obj = self.store.get(key)
    if obj is None:
      raise NotFound('Artifact not found')
    return md.parse_metadata(obj.data)

  def list_groups(self) -> List[str]:
    """
    Returns the top-level groups, eg. `com`.
    """

    return list(self._children(''))

  def list_artifacts(self, group_id: str) -> List[Dict[str, Any]]:
    """
    Returns the children of a group. A child with a `maven-metadata.xml` is
    an artifact, anything else is a subgroup. Requires one request per child.
    """

    prefix = self._path(group_id) + '/'
    return [
      {'name': name, 'isArtifact': self.store.head(prefix + name + '/' + coordinates.METADATA_FILE)}
      for name in self._children(prefix)
    ]

  def list_versions(self, group_id: str, artifact_id: str) -> List[Dict[str, Any]]:
    """
    Returns the versions from the artifact's metadata, highest first, with
    `latest` and `release` badges.

    Raises:
      NotFound: If the artifact has no metadata.
      InvalidMetadata: If the metadata has no versions or is unparseable.
    """

    meta = self._read_metadata(group_id, artifact_id)
    if not meta.versions:
      raise InvalidMetadata()
    latest = meta.latest or meta.release
    return [
      {'version': version, 'latest': version == latest, 'release': version == meta.release}
      for version in md.sort_versions(meta.versions)
    ]

  def list_files(self, group_id: str, artifact_id: str, version: str) -> List[Dict[str, Any]]:
    prefix = self._path(group_id, artifact_id, version) + '/'
    files = []
    for page in iter_list(self.store, prefix, '/'):
      for obj in page.objects:
        name = obj.key[len(prefix):]
        if name and not name.startswith('.'):
          files.append({
            'name': name,
            'size': obj.size,
            'uploaded': obj.uploaded.isoformat() if obj.uploaded else None,
          })
    return files

  def get_latest(self, group_id: str, artifact_id: str) -> str:
    """
    Returns the `latest` version, falling back to `release`.

    Raises:
      NotFound: If the artifact has no metadata.
      NotDeterminable: If the metadata has neither pointer.
    """

    meta = self._read_metadata(group_id, artifact_id)
    latest = meta.latest or meta.release
    if not latest:
      raise NotDeterminable()
    return latest
