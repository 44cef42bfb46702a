"""
Local file-system object store.
"""

from mavenbucket.storage import base
import datetime
import os
import tempfile

TEMP_PREFIX = '.upload-'


class FsWriteStream:
  """
  Wrapper for a file on the filesystem. Writes to a temporary file in the
  target directory first. Only when the stream is closed without exception
  will the temporary file be renamed to the target filename.
  """

  def __init__(self, filename):
    self._filename = filename
    os.makedirs(os.path.dirname(filename), exist_ok=True)
    fd, self._tempname = tempfile.mkstemp(
      prefix=TEMP_PREFIX, dir=os.path.dirname(filename))
    self._fp = os.fdopen(fd, 'wb')
    self._closed = False
    self._aborted = False

  def __enter__(self):
    return self

  def __exit__(self, exc_type, exc_value, exc_tb):
    if exc_value is not None:
      self.abort()
    else:
      self.close()

  def abort(self):
    if self._closed and not self._aborted:
      raise RuntimeError('WriteStream already closed, can no longer abort')
    self._closed = True
    self._aborted = True
    self._fp.close()
    try:
      os.remove(self._tempname)
    except FileNotFoundError:
      pass

  def close(self):
    if self._closed:
      return
    self._closed = True
    self._fp.close()
    os.replace(self._tempname, self._filename)

  def write(self, data):
    written = self._fp.write(data)
    if written != len(data):
      raise RuntimeError('wrote {} instead of {} bytes'.format(written, len(data)))
    return written


class FsStore(base.ObjectStore):
  """
  Stores objects as files in a directory, one file per key. The `/` in keys
  maps to directories.

  Conditional writes are checked before the file is replaced, but the check
  and the write are not atomic.
  """

  def __init__(self, directory):
    self.directory = os.path.abspath(directory)

  def __repr__(self):
    return '<FsStore {!r}>'.format(self.directory)

  def mkpath(self, key):
    parts = key.split('/')
    if any(x in ('', '.', '..') for x in parts) or '\\' in key:
      raise ValueError('unsupported key: {!r}'.format(key))
    return os.path.join(self.directory, *parts)

  def _info(self, key, path):
    st = os.stat(path)
    uploaded = datetime.datetime.fromtimestamp(st.st_mtime, datetime.timezone.utc)
    return base.ObjectInfo(key, st.st_size, uploaded,
                           '{:x}-{:x}'.format(st.st_mtime_ns, st.st_size))

  def _walk(self):
    for root, dirs, files in os.walk(self.directory):
      rel = os.path.relpath(root, self.directory)
      for name in files:
        if name.startswith(TEMP_PREFIX):
          continue
        key = name if rel == '.' else '/'.join(rel.split(os.sep) + [name])
        yield key, os.path.join(root, name)

  def list(self, prefix='', delimiter=None, cursor=None, limit=1000):
    try:
      objects = sorted((self._info(k, p) for k, p in self._walk()), key=lambda x: x.key)
    except OSError as exc:
      raise base.StorageUnavailable(str(exc))
    return base.paginate(objects, prefix, delimiter, cursor, limit)

  def get(self, key):
    path = self.mkpath(key)
    try:
      info = self._info(key, path)
      with open(path, 'rb') as fp:
        return base.StoredObject(info, fp.read())
    except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
      return None
    except OSError as exc:
      raise base.StorageUnavailable(str(exc))

  def head(self, key):
    return os.path.isfile(self.mkpath(key))

  def put(self, key, data, content_type=None, if_match=None, if_none_match=False):
    path = self.mkpath(key)
    if if_none_match or if_match is not None:
      current = self._info(key, path) if os.path.isfile(path) else None
      if if_none_match and current is not None:
        raise base.PreconditionFailed(key)
      if if_match is not None and (current is None or current.etag != if_match):
        raise base.PreconditionFailed(key)
    try:
      with FsWriteStream(path) as fp:
        fp.write(data)
      return self._info(key, path)
    except OSError as exc:
      raise base.StorageUnavailable(str(exc))

  def delete(self, keys):
    for key in keys:
      path = self.mkpath(key)
      try:
        os.remove(path)
      except FileNotFoundError:
        continue
      except OSError as exc:
        raise base.StorageUnavailable(str(exc))
      self._prune(os.path.dirname(path))

  def _prune(self, directory):
    # Remove directories that became empty, up to the store's root.
    while directory != self.directory and directory.startswith(self.directory):
      try:
        os.rmdir(directory)
      except OSError:
        break
      directory = os.path.dirname(directory)
