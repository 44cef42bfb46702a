
from mavenbucket.storage.memory import MemoryStore
from mavenbucket.web.auth import BasicAuthorizer
from mavenbucket.web.cli import build_basicauth
from mavenbucket.web.config import RepositoryConfig
from mavenbucket.web.server import create_app
import datetime
import pytest

USERNAME = 'deployer'
PASSWORD = 's3cret'


class Clock:
  """
  A settable clock for snapshot timestamps.
  """

  def __init__(self, now=None):
    self.now = now or datetime.datetime(2024, 5, 17, 12, 30, 45, tzinfo=datetime.timezone.utc)

  def __call__(self):
    return self.now

  def advance(self, **kwargs):
    self.now += datetime.timedelta(**kwargs)


@pytest.fixture
def clock():
  return Clock()


@pytest.fixture
def bucket():
  return MemoryStore()


@pytest.fixture
def config(bucket, clock):
  auth = BasicAuthorizer(USERNAME, PASSWORD)
  return RepositoryConfig.for_bucket(bucket, auth, clock=clock)


@pytest.fixture
def app(config):
  app = create_app(config)
  app.config['TESTING'] = True
  return app


@pytest.fixture
def client(app):
  return app.test_client()


@pytest.fixture
def auth_headers():
  return {'Authorization': build_basicauth(USERNAME, PASSWORD)}
