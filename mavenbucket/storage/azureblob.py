"""
Object store implementation for Azure Blob Storage.
"""

from mavenbucket.storage import base
from azure.core import MatchConditions
from azure.core.exceptions import (AzureError, ResourceExistsError,
  ResourceModifiedError, ResourceNotFoundError)
from azure.storage.blob import BlobPrefix, BlobServiceClient, ContentSettings


class AzureBlobStore(base.ObjectStore):
  """
  An implementation of the #base.ObjectStore interface that communicates
  with an Azure Blob Storage container. Conditional writes map to the
  service's ETag match conditions and are atomic.

  Args:
    container: A #azure.storage.blob.ContainerClient.
  """

  @classmethod
  def from_connection_string(cls, connection_string, container_name):
    service = BlobServiceClient.from_connection_string(connection_string)
    return cls(service.get_container_client(container_name))

  def __init__(self, container):
    self.container = container

  def __repr__(self):
    return '<AzureBlobStore {!r}>'.format(self.container.container_name)

  @staticmethod
  def _info(props):
    return base.ObjectInfo(props.name, props.size, props.last_modified,
                           props.etag.strip('"'))

  def list(self, prefix='', delimiter=None, cursor=None, limit=1000):
    try:
      if delimiter:
        items = self.container.walk_blobs(name_starts_with=prefix or None,
          delimiter=delimiter, results_per_page=limit)
      else:
        items = self.container.list_blobs(name_starts_with=prefix or None,
          results_per_page=limit)
      pages = items.by_page(continuation_token=cursor)
      objects, prefixes = [], []
      for item in next(pages, []):
        if isinstance(item, BlobPrefix):
          prefixes.append(item.name)
        else:
          objects.append(self._info(item))
      token = pages.continuation_token
    except AzureError as exc:
      raise base.StorageUnavailable(str(exc))
    return base.ListResult(objects, prefixes, bool(token), token)

  def get(self, key):
    try:
      downloader = self.container.download_blob(key)
      data = downloader.readall()
    except ResourceNotFoundError:
      return None
    except AzureError as exc:
      raise base.StorageUnavailable(str(exc))
    return base.StoredObject(self._info(downloader.properties), data)

  def head(self, key):
    try:
      return self.container.get_blob_client(key).exists()
    except AzureError as exc:
      raise base.StorageUnavailable(str(exc))

  def put(self, key, data, content_type=None, if_match=None, if_none_match=False):
    kwargs = {}
    if content_type:
      kwargs['content_settings'] = ContentSettings(content_type=content_type)
    if if_match is not None:
      kwargs['etag'] = '"{}"'.format(if_match)
      kwargs['match_condition'] = MatchConditions.IfNotModified
    try:
      client = self.container.upload_blob(key, data, overwrite=not if_none_match, **kwargs)
      props = client.get_blob_properties()
    except (ResourceExistsError, ResourceModifiedError):
      raise base.PreconditionFailed(key)
    except ResourceNotFoundError:
      if if_match is not None:
        raise base.PreconditionFailed(key)
      raise base.StorageUnavailable('container does not exist')
    except AzureError as exc:
      raise base.StorageUnavailable(str(exc))
    return self._info(props)

  def delete(self, keys):
    keys = list(keys)
    try:
      # The batch API accepts at most 256 blobs per request. Missing blobs
      # are reported per blob and ignored.
      for i in range(0, len(keys), 256):
        self.container.delete_blobs(*keys[i:i + 256], raise_on_any_failure=False)
    except AzureError as exc:
      raise base.StorageUnavailable(str(exc))
