"""
Object-store abstraction layer. The repository never sees directories, only
a flat namespace of keys. Hierarchy is derived from prefix listings that
group keys by the next delimiter ("common prefixes").
"""

from mavenbucket.errors import RepositoryError
from typing import *
import abc
import datetime


class StorageUnavailable(RepositoryError):
  """
  Raised for any failure of the backing store. The message is not exposed
  to clients.
  """

  status_code = 500
  expose = False

  @classmethod
  def default_message(cls):
    return 'Storage unavailable'


class PreconditionFailed(Exception):
  """
  Raised by #ObjectStore.put() when a conditional write does not match the
  current state of the object.
  """

  def __init__(self, key):
    self.key = key

  def __str__(self):
    return self.key


class ObjectInfo(NamedTuple):
  key: str
  size: int
  uploaded: datetime.datetime
  etag: str = None


class StoredObject(NamedTuple):
  info: ObjectInfo
  data: bytes

  @property
  def etag(self):
    return self.info.etag


class ListResult(NamedTuple):
  # Leaf objects matched by the listing.
  objects: List[ObjectInfo]

  # Direct child prefixes, each ending with the delimiter. Only filled for
  # delimited listings.
  prefixes: List[str]

  truncated: bool = False

  # Opaque value to pass to #ObjectStore.list() to fetch the next page.
  cursor: str = None

  @property
  def keys(self) -> List[str]:
    return [x.key for x in self.objects]


class ObjectStore(metaclass=abc.ABCMeta):
  """
  Interface for a flat key-value object store. Implementations must raise
  #StorageUnavailable for errors of the backend.
  """

  @abc.abstractmethod
  def list(self, prefix:str='', delimiter:str=None, cursor:str=None,
           limit:int=1000) -> ListResult:
    """
    List keys starting with *prefix*. If *delimiter* is specified, keys that
    contain the delimiter after the prefix are rolled up into a common
    prefix instead of being returned as objects.

    A single call returns at most *limit* entries (objects plus prefixes).
    If the result is truncated, pass #ListResult.cursor to get the next
    page. Never assume that one page is exhaustive, use #iter_list().
    """

    raise NotImplementedError

  @abc.abstractmethod
  def get(self, key:str) -> Optional[StoredObject]:
    """
    Read an object. Returns #None if it does not exist.
    """

    raise NotImplementedError

  def head(self, key:str) -> bool:
    return self.get(key) is not None

  @abc.abstractmethod
  def put(self, key:str, data:bytes, content_type:str=None,
          if_match:str=None, if_none_match:bool=False) -> ObjectInfo:
    """
    Write an object, replacing it if it exists.

    If *if_match* is specified, the write only succeeds if the object
    currently has that etag. If *if_none_match* is #True, the write only
    succeeds if the object does not exist.

    Raises:
      PreconditionFailed: If a condition does not hold.
    """

    raise NotImplementedError

  @abc.abstractmethod
  def delete(self, keys:Iterable[str]):
    """
    Delete all *keys*. Keys that do not exist are ignored.
    """

    raise NotImplementedError


def iter_list(store:ObjectStore, prefix:str='', delimiter:str=None,
              limit:int=1000) -> Iterator[ListResult]:
  """
  Yields every page of a listing until the store reports no truncation.
  """

  cursor = None
  while True:
    page = store.list(prefix, delimiter, cursor, limit)
    yield page
    if not page.truncated:
      break
    cursor = page.cursor


def paginate(objects:Iterable[ObjectInfo], prefix:str, delimiter:str,
             cursor:str, limit:int) -> ListResult:
  """
  Implements the listing semantics over a sorted iterable of objects. Used
  by stores that can enumerate their keys but have no native listing.

  The cursor is the last key or common prefix that was returned.
  """

  result, prefixes = [], []
  seen = set()
  last = None
  for obj in objects:
    key = obj.key
    if not key.startswith(prefix):
      continue
    if cursor is not None:
      if key <= cursor:
        continue
      if delimiter and cursor.endswith(delimiter) and key.startswith(cursor):
        continue
    common = None
    if delimiter:
      index = key.find(delimiter, len(prefix))
      if index >= 0:
        common = key[:index + len(delimiter)]
    if common is not None and common in seen:
      continue
    if len(result) + len(prefixes) >= limit:
      return ListResult(result, prefixes, True, last)
    if common is not None:
      seen.add(common)
      prefixes.append(common)
      last = common
    else:
      result.append(obj)
      last = key
  return ListResult(result, prefixes, False, None)


class PrefixedStore(ObjectStore):
  """
  A view of an #ObjectStore where all keys are relative to *root*. Used to
  expose the `releases/` and `snapshots/` roots of a single bucket.
  """

  def __init__(self, store:ObjectStore, root:str):
    if root and not root.endswith('/'):
      root += '/'
    self.store = store
    self.root = root

  def __repr__(self):
    return '<PrefixedStore {!r} of {!r}>'.format(self.root, self.store)

  def _strip(self, key):
    assert key.startswith(self.root), key
    return key[len(self.root):]

  def list(self, prefix='', delimiter=None, cursor=None, limit=1000):
    page = self.store.list(self.root + prefix, delimiter, cursor, limit)
    objects = [x._replace(key=self._strip(x.key)) for x in page.objects]
    prefixes = [self._strip(x) for x in page.prefixes]
    return ListResult(objects, prefixes, page.truncated, page.cursor)

  def get(self, key):
    obj = self.store.get(self.root + key)
    if obj is None:
      return None
    return obj._replace(info=obj.info._replace(key=key))

  def head(self, key):
    return self.store.head(self.root + key)

  def put(self, key, data, content_type=None, if_match=None, if_none_match=False):
    info = self.store.put(self.root + key, data, content_type, if_match, if_none_match)
    return info._replace(key=key)

  def delete(self, keys):
    self.store.delete([self.root + x for x in keys])
