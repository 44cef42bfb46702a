
from mavenbucket.catalog import Catalog
from mavenbucket.errors import InvalidMetadata, MalformedPath, NotDeterminable, NotFound
from mavenbucket.storage.memory import MemoryStore
import pytest

METADATA = b'''<metadata>
  <groupId>com.iamkaf</groupId>
  <artifactId>amber</artifactId>
  <versioning>
    <latest>1.10.0</latest>
    <release>1.2.0</release>
    <versions>
      <version>1.0.0</version>
      <version>1.10.0</version>
      <version>1.2.0</version>
    </versions>
  </versioning>
</metadata>'''


@pytest.fixture
def store():
  store = MemoryStore()
  store.put('com/iamkaf/amber/maven-metadata.xml', METADATA)
  store.put('com/iamkaf/amber/1.0.0/amber-1.0.0.jar', b'12345')
  store.put('com/iamkaf/amber/1.0.0/amber-1.0.0.pom', b'<project/>')
  store.put('com/iamkaf/amber/1.0.0/.DS_Store', b'')
  store.put('com/iamkaf/core/sub/1.0/sub-1.0.jar', b'')
  store.put('net/other/lib/maven-metadata.xml', b'<metadata><versioning/></metadata>')
  store.put('.well-known/thing', b'')
  return store


@pytest.fixture
def catalog(store):
  return Catalog(store)


def test_list_groups_skips_hidden(catalog):
  assert catalog.list_groups() == ['com', 'net']


def test_list_artifacts_classifies_by_metadata(catalog):
  assert catalog.list_artifacts('com.iamkaf') == [
    {'name': 'amber', 'isArtifact': True},
    {'name': 'core', 'isArtifact': False},
  ]
  assert catalog.list_artifacts('com') == [{'name': 'iamkaf', 'isArtifact': False}]
  assert catalog.list_artifacts('does.not.exist') == []


def test_list_versions_sorted_with_badges(catalog):
  assert catalog.list_versions('com.iamkaf', 'amber') == [
    {'version': '1.10.0', 'latest': True, 'release': False},
    {'version': '1.2.0', 'latest': False, 'release': True},
    {'version': '1.0.0', 'latest': False, 'release': False},
  ]


def test_list_versions_errors(catalog, store):
  with pytest.raises(NotFound):
    catalog.list_versions('com.iamkaf', 'core')
  with pytest.raises(InvalidMetadata):
    catalog.list_versions('net.other', 'lib')
  store.put('com/iamkaf/amber/maven-metadata.xml', b'<metadata><broken')
  with pytest.raises(InvalidMetadata):
    catalog.list_versions('com.iamkaf', 'amber')


def test_list_files(catalog):
  files = catalog.list_files('com.iamkaf', 'amber', '1.0.0')
  assert [(x['name'], x['size']) for x in files] == [('amber-1.0.0.jar', 5), ('amber-1.0.0.pom', 10)]
  assert all(isinstance(x['uploaded'], str) for x in files)
  assert catalog.list_files('com.iamkaf', 'amber', '9.9.9') == []


def test_list_files_is_repeatable(catalog):
  assert catalog.list_files('com.iamkaf', 'amber', '1.0.0') == catalog.list_files('com.iamkaf', 'amber', '1.0.0')


def test_get_latest(catalog, store):
  assert catalog.get_latest('com.iamkaf', 'amber') == '1.10.0'
  store.put('com/x/y/maven-metadata.xml', b'<metadata><versioning><release>2.0</release></versioning></metadata>')
  assert catalog.get_latest('com.x', 'y') == '2.0'
  with pytest.raises(NotDeterminable):
    catalog.get_latest('net.other', 'lib')
  with pytest.raises(NotFound):
    catalog.get_latest('com.iamkaf', 'missing')


def test_listing_spans_pages():
  store = MemoryStore()
  for i in range(25):
    store.put('g/a/1.0/file-{:02d}.jar'.format(i), b'')
  store.list = _limited(store.list, 4)
  assert len(Catalog(store).list_files('g', 'a', '1.0')) == 25


def _limited(list_func, limit):
  def wrapper(prefix='', delimiter=None, cursor=None, _limit=None):
    return list_func(prefix, delimiter, cursor, limit)
  return wrapper


@pytest.mark.parametrize('group,artifact', [('com..iamkaf', 'amber'), ('com.iamkaf', '..'), ('com', 'a/b')])
def test_malformed_coordinates_are_rejected(catalog, group, artifact):
  with pytest.raises(MalformedPath):
    catalog.list_versions(group, artifact)
