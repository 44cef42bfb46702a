
from helpers import all_keys
from mavenbucket.storage.base import StorageUnavailable
from mavenbucket.web.cli import build_basicauth
import pytest

METADATA = b'''<?xml version="1.0" encoding="UTF-8"?>
<metadata>
  <groupId>com.iamkaf</groupId>
  <artifactId>amber</artifactId>
  <versioning>
    <latest>1.1.0</latest>
    <release>1.1.0</release>
    <versions><version>1.0.0</version><version>1.1.0</version></versions>
  </versioning>
</metadata>'''


def test_publish_release_then_conflict(client, auth_headers):
  url = '/releases/com/iamkaf/amber/1.0.0/amber-1.0.0.jar'
  response = client.put(url, data=b'jar', headers=auth_headers)
  assert response.status_code == 200
  assert response.data == b'OK'
  response = client.put(url, data=b'jar', headers=auth_headers)
  assert response.status_code == 409
  assert response.mimetype == 'text/plain'
  assert b'already exists' in response.data


def test_publish_checksum_twice(client, auth_headers):
  url = '/releases/com/iamkaf/amber/1.0.0/amber-1.0.0.jar.sha1'
  assert client.put(url, data=b'a', headers=auth_headers).status_code == 200
  assert client.put(url, data=b'b', headers=auth_headers).status_code == 200


@pytest.mark.parametrize('headers', [
  {},
  {'Authorization': 'Bearer token'},
  {'Authorization': 'Basic !!!notbase64'},
  {'Authorization': build_basicauth('deployer', 'wrong')},
  {'Authorization': build_basicauth('someone', 's3cret')},
])
def test_publish_unauthorized(client, headers, bucket):
  response = client.put('/releases/com/iamkaf/amber/1.0.0/amber-1.0.0.jar', data=b'x', headers=headers)
  assert response.status_code == 401
  assert response.headers['WWW-Authenticate'] == 'Basic realm="Maven Repository"'
  assert all_keys(bucket) == []


def test_publish_without_configured_credentials(app, config, auth_headers):
  app.extensions['mavenbucket'] = config._replace(auth=type(config.auth)(None, None))
  response = app.test_client().put('/releases/com/a/1/a-1.jar', data=b'x', headers=auth_headers)
  assert response.status_code == 401


@pytest.mark.parametrize('url', [
  '/releases/com/amber/1.0.0',
  '/releases/com/amber/1.0.0/amber.zip',
  '/snapshots/com/iamkaf/amber/1.0/amber-1.0.jar',
])
def test_publish_bad_request(client, auth_headers, url):
  response = client.put(url, data=b'x', headers=auth_headers)
  assert response.status_code == 400


def test_publish_snapshot_and_download(client, auth_headers):
  url = '/snapshots/com/iamkaf/amber/1.0-SNAPSHOT/amber-1.0-20240101.000000-1.jar'
  assert client.put(url, data=b'bytes', headers=auth_headers).status_code == 200
  response = client.get(url)
  assert response.status_code == 200
  assert response.data == b'bytes'
  assert response.mimetype == 'application/java-archive'
  assert response.headers['Cache-Control'] == 'public, max-age=3600'
  assert response.headers['ETag']


def test_publish_snapshot_artifact_metadata(client, auth_headers):
  url = '/snapshots/com/iamkaf/amber/maven-metadata.xml'
  assert client.put(url, data=METADATA, headers=auth_headers).status_code == 200
  response = client.get(url)
  assert response.data == METADATA
  assert response.mimetype == 'application/xml'


def test_download_missing(client):
  response = client.get('/releases/com/iamkaf/amber/1.0.0/amber-1.0.0.jar')
  assert response.status_code == 404
  assert response.mimetype == 'text/plain'


def test_browse_published_artifact(client, auth_headers):
  client.put('/releases/com/iamkaf/amber/1.0.0/amber-1.0.0.jar', data=b'jar', headers=auth_headers)
  client.put('/releases/com/iamkaf/amber/1.1.0/amber-1.1.0.jar', data=b'jar2', headers=auth_headers)
  client.put('/releases/com/iamkaf/amber/maven-metadata.xml', data=METADATA, headers=auth_headers)
  client.put('/releases/com/iamkaf/core/lib/1.0/lib-1.0.jar', data=b'', headers=auth_headers)

  assert client.get('/api/groups').json == {'data': ['com'], 'error': None}
  assert client.get('/api/artifacts?group=com.iamkaf').json['data'] == [
    {'name': 'amber', 'isArtifact': True},
    {'name': 'core', 'isArtifact': False},
  ]
  assert client.get('/api/versions?group=com.iamkaf&artifact=amber').json['data'] == [
    {'version': '1.1.0', 'latest': True, 'release': True},
    {'version': '1.0.0', 'latest': False, 'release': False},
  ]
  files = client.get('/api/files?group=com.iamkaf&artifact=amber&version=1.0.0').json['data']
  assert [(x['name'], x['size']) for x in files] == [('amber-1.0.0.jar', 3)]
  assert client.get('/api/latest?group=com.iamkaf&artifact=amber').json == {'data': '1.1.0', 'error': None}


def test_api_errors(client, bucket):
  response = client.get('/api/artifacts')
  assert response.status_code == 400
  assert response.json == {'data': None, 'error': 'Missing required parameter: group'}
  response = client.get('/api/files?group=g&artifact=a')
  assert response.json['error'] == 'Missing required parameters: group, artifact, version'

  response = client.get('/api/versions?group=com.iamkaf&artifact=amber')
  assert response.status_code == 404
  assert response.json == {'data': None, 'error': 'Artifact not found'}

  bucket.put('releases/com/iamkaf/amber/maven-metadata.xml', b'garbage')
  response = client.get('/api/versions?group=com.iamkaf&artifact=amber')
  assert response.status_code == 500
  assert response.json['data'] is None

  assert client.get('/api/groups?repository=nope').status_code == 400
  assert client.get('/api/unknown').json == {'data': None, 'error': 'Not found'}


def test_storage_errors_are_not_leaked(client, bucket, monkeypatch):
  def fail(*args, **kwargs):
    raise StorageUnavailable('secret connection string')
  monkeypatch.setattr(bucket, 'list', fail)
  response = client.get('/api/groups')
  assert response.status_code == 500
  assert response.json == {'data': None, 'error': 'Internal server error'}


def test_unexpected_errors_are_generic(client, bucket, monkeypatch):
  def fail(*args, **kwargs):
    raise RuntimeError('boom')
  monkeypatch.setattr(bucket, 'get', fail)
  response = client.get('/api/latest?group=a&artifact=b')
  assert response.status_code == 500
  assert response.json['error'] == 'Internal server error'
  response = client.get('/releases/a/b/1/b-1.jar')
  assert response.status_code == 500
  assert response.data == b'Internal server error'


def test_snapshot_repository_browsing(client, auth_headers):
  response = client.post('/api/deploy?group=com.iamkaf&artifact=amber&version=2.0-SNAPSHOT&extension=jar',
                         data=b'jar', headers=auth_headers)
  assert response.status_code == 200
  data = response.json['data']
  assert data == {
    'key': 'com/iamkaf/amber/2.0-SNAPSHOT/amber-2.0-20240517.123045-1.jar',
    'version': '2.0-SNAPSHOT',
    'timestamp': '20240517.123045',
    'buildNumber': 1,
  }
  assert client.get('/snapshots/' + data['key']).data == b'jar'
  versions = client.get('/api/versions?group=com.iamkaf&artifact=amber&repository=snapshots').json['data']
  assert versions == [{'version': '2.0-SNAPSHOT', 'latest': True, 'release': False}]
  assert client.get('/api/versions?group=com.iamkaf&artifact=amber').status_code == 404


def test_deploy_requires_auth_and_params(client, auth_headers):
  assert client.post('/api/deploy?group=g&artifact=a&version=1&extension=jar').status_code == 401
  response = client.post('/api/deploy?group=g&artifact=a', headers=auth_headers)
  assert response.status_code == 400
  response = client.post('/api/deploy?group=g&artifact=a&version=1&extension=jar', data=b'x', headers=auth_headers)
  assert response.status_code == 200
  response = client.post('/api/deploy?group=g&artifact=a&version=1&extension=jar', data=b'x', headers=auth_headers)
  assert response.status_code == 409


def test_purge(client, auth_headers, bucket):
  bucket.put('releases/com/iamkaf/amber/1.0/amber-1.0.jar', b'')
  bucket.put('snapshots/com/iamkaf/amber/1.1-SNAPSHOT/amber-1.1-20240101.000000-1.jar', b'')
  bucket.put('releases/com/iamkaf/other/1.0/other-1.0.jar', b'')

  assert client.delete('/api/purge?prefix=com.iamkaf.amber').status_code == 401
  response = client.delete('/api/purge?prefix=com.iamkaf.amber', headers=auth_headers)
  assert response.status_code == 200
  assert response.json == {
    'success': True,
    'deleted': [
      'releases/com/iamkaf/amber/1.0/amber-1.0.jar',
      'snapshots/com/iamkaf/amber/1.1-SNAPSHOT/amber-1.1-20240101.000000-1.jar',
    ],
  }
  assert all_keys(bucket) == ['releases/com/iamkaf/other/1.0/other-1.0.jar']
  assert client.delete('/api/purge', headers=auth_headers).status_code == 400


def test_cors_preflight(client):
  for url in ('/api/groups', '/releases/a/b/1/b-1.jar', '/anything'):
    response = client.options(url)
    assert response.status_code == 204
    assert response.headers['Access-Control-Allow-Origin'] == '*'
    assert 'PUT' in response.headers['Access-Control-Allow-Methods']
    assert 'Authorization' in response.headers['Access-Control-Allow-Headers']
  assert client.get('/api/groups').headers['Access-Control-Allow-Origin'] == '*'


def test_method_not_allowed(client):
  response = client.put('/api/groups')
  assert response.status_code == 405
  assert response.json == {'data': None, 'error': 'Method not allowed'}
  response = client.delete('/releases/a/b/1/b-1.jar')
  assert response.status_code == 405
  assert response.data == b'Method not allowed'
