"""
In-memory object store. Useful for tests and development servers, all data
is lost when the process exits.
"""

from mavenbucket.storage import base
import datetime
import hashlib
import threading


class MemoryStore(base.ObjectStore):

  def __init__(self, clock=None):
    self._objects = {}
    self._lock = threading.Lock()
    self._clock = clock or (lambda: datetime.datetime.now(datetime.timezone.utc))

  def __repr__(self):
    return '<MemoryStore ({} objects)>'.format(len(self._objects))

  def list(self, prefix='', delimiter=None, cursor=None, limit=1000):
    with self._lock:
      objects = [self._objects[k].info for k in sorted(self._objects)]
    return base.paginate(objects, prefix, delimiter, cursor, limit)

  def get(self, key):
    with self._lock:
      return self._objects.get(key)

  def put(self, key, data, content_type=None, if_match=None, if_none_match=False):
    data = bytes(data)
    with self._lock:
      current = self._objects.get(key)
      if if_none_match and current is not None:
        raise base.PreconditionFailed(key)
      if if_match is not None and (current is None or current.etag != if_match):
        raise base.PreconditionFailed(key)
      # Include the previous etag so that rewriting identical content still
      # produces a new etag.
      digest = hashlib.md5(data)
      if current is not None:
        digest.update(current.etag.encode('ascii'))
      info = base.ObjectInfo(key, len(data), self._clock(), digest.hexdigest())
      self._objects[key] = base.StoredObject(info, data)
    return info

  def delete(self, keys):
    with self._lock:
      for key in keys:
        self._objects.pop(key, None)
