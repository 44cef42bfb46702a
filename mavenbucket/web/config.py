"""
Components that the web application is initialized with.
"""

from mavenbucket.catalog import Catalog
from mavenbucket.coordinates import RELEASES, SNAPSHOTS
from mavenbucket.publish import Publisher
from mavenbucket.storage.base import ObjectStore, PrefixedStore
from .auth import Authorizer
from typing import *
import datetime
import flask
import werkzeug.local

EXTENSION_NAME = 'mavenbucket'


class RepositoryConfig(NamedTuple):
  auth: Authorizer
  releases: ObjectStore
  snapshots: ObjectStore

  # Returns the current time, used for snapshot timestamps.
  clock: Callable[[], datetime.datetime] = None

  @classmethod
  def for_bucket(cls, store: ObjectStore, auth: Authorizer,
                 releases_prefix: str = 'releases/',
                 snapshots_prefix: str = 'snapshots/', **kwargs) -> 'RepositoryConfig':
    """
    Creates a configuration where both roots live in the same *store*,
    separated by key prefixes.
    """

    return cls(auth, PrefixedStore(store, releases_prefix),
               PrefixedStore(store, snapshots_prefix), **kwargs)

  @property
  def roots(self) -> Dict[str, ObjectStore]:
    return {RELEASES: self.releases, SNAPSHOTS: self.snapshots}

  def catalog(self, root: str = RELEASES) -> Catalog:
    return Catalog(self.roots[root])

  def publisher(self) -> Publisher:
    return Publisher(self.releases, self.snapshots, self.clock)


def init_app(app: flask.Flask, cfg: RepositoryConfig):
  assert isinstance(cfg.auth, Authorizer), type(cfg.auth)
  assert isinstance(cfg.releases, ObjectStore), type(cfg.releases)
  assert isinstance(cfg.snapshots, ObjectStore), type(cfg.snapshots)
  app.extensions[EXTENSION_NAME] = cfg


config = werkzeug.local.LocalProxy(lambda: flask.current_app.extensions[EXTENSION_NAME])
