"""
Recursive deletion of everything below a group or artifact.
"""

from mavenbucket import coordinates
from mavenbucket.errors import MalformedPath, RepositoryError
from mavenbucket.storage.base import ObjectStore
from typing import *
import logging

logger = logging.getLogger(__name__)


class PurgeResult(NamedTuple):
  deleted: List[str]

  # Maps the root name to the error that stopped the purge of that root.
  errors: Dict[str, str]

  @property
  def success(self) -> bool:
    return not self.errors

  def to_json(self):
    result = {'success': self.success, 'deleted': self.deleted}
    if self.errors:
      result['errors'] = [{'root': k, 'error': v} for k, v in self.errors.items()]
    return result


def purge(roots: Mapping[str, ObjectStore], prefix: str, batch_size: int = 1000) -> PurgeResult:
  """
  Deletes all objects below the dotted *prefix* (eg. `com.example.lib`) in
  every root. The roots are processed one after another and nothing is
  rolled back: an error in one root is recorded and the next root is still
  purged.

  Deleted keys are reported including the root, eg.
  `releases/com/example/lib/1.0/lib-1.0.jar`.

  Raises:
    MalformedPath: If *prefix* is empty or has empty segments.
  """

  parts = prefix.strip().split('.') if prefix else []
  if not parts:
    raise MalformedPath('Missing prefix')
  for part in parts:
    coordinates.validate_segment(part, 'prefix')
  path = '/'.join(parts) + '/'

  deleted, errors = [], {}
  for name, store in roots.items():
    cursor = None
    try:
      while True:
        page = store.list(path, cursor=cursor, limit=batch_size)
        keys = page.keys
        if keys:
          store.delete(keys)
          deleted.extend(name + '/' + key for key in keys)
          logger.info('Purged %d objects from %s/%s', len(keys), name, path)
        if not page.truncated:
          break
        cursor = page.cursor
    except RepositoryError as exc:
      logger.exception('Purge of %s/%s failed', name, path)
      errors[name] = exc.message if exc.expose else 'Storage unavailable'
  return PurgeResult(deleted, errors)
