
from mavenbucket.storage.fs import FsStore
from mavenbucket.storage.memory import MemoryStore
from mavenbucket.web.auth import BasicAuthorizer
from mavenbucket.web.config import RepositoryConfig
import os

log_level = os.getenv('MAVENBUCKET_LOG_LEVEL', 'INFO').upper()
storage_type = os.getenv('MAVENBUCKET_STORAGE', 'fs')

if storage_type == 'azure':
  from mavenbucket.storage.azureblob import AzureBlobStore
  store = AzureBlobStore.from_connection_string(
    os.environ['AZURE_STORAGE_CONNECTION_STRING'],
    os.getenv('MAVENBUCKET_CONTAINER', 'maven'))
elif storage_type == 'memory':
  store = MemoryStore()
elif storage_type == 'fs':
  store = FsStore(os.getenv('MAVENBUCKET_STORAGE_DIR', os.path.abspath('_storage')))
else:
  raise ValueError('unknown MAVENBUCKET_STORAGE: {!r}'.format(storage_type))

auth = BasicAuthorizer(
  os.getenv('MAVEN_PUBLISH_USERNAME'),
  os.getenv('MAVEN_PUBLISH_PASSWORD'),
  hashed=os.getenv('MAVEN_PUBLISH_PASSWORD_HASHED', '').lower() in ('1', 'yes', 'true', 'on'))

config = RepositoryConfig.for_bucket(
  store, auth,
  releases_prefix=os.getenv('MAVENBUCKET_RELEASES_PREFIX', 'releases/'),
  snapshots_prefix=os.getenv('MAVENBUCKET_SNAPSHOTS_PREFIX', 'snapshots/'))
