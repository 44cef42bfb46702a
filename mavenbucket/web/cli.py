"""
Command-line interface that uses the REST API to upload the contents of a
local Maven repository (eg. `~/.m2/repository`) and to purge artifacts.
"""

from mavenbucket import coordinates
from mavenbucket import metadata as md
from mavenbucket.errors import InvalidMetadata
import argparse
import base64
import getpass
import os
import requests
import shlex
import sys

parser = argparse.ArgumentParser(
  prog = 'mavenbucket-cli',
  description = '''
    The mavenbucket CLI for uploading local Maven repositories.
  '''
)
parser.add_argument('apiurl', help='The repository base url.')
parser.add_argument('-u', '--auth', help='''
  HTTP BasicAuth parameters in the format <user>:<password>. The :<password>
  part can be omitted, in which case the password will be requested via stdin.
  If the option is not specified, the MAVEN_PUBLISH_USERNAME and
  MAVEN_PUBLISH_PASSWORD environment variables are used.
  '''
)
parser.add_argument('--test', action='store_true', help='''
  Print the requests that would be sent to the repository and exit.
  '''
)
subparsers = parser.add_subparsers(dest='command', required=True)

upload_parser = subparsers.add_parser('upload', help='''
  Upload a single version from a local Maven repository. Fails if a release
  version already exists in the repository.
  '''
)
upload_parser.add_argument('repository', help='The local Maven repository directory.')
upload_parser.add_argument('coordinate', help='''
  The version to upload in the format <group>:<artifact>:<version>.
  '''
)

sync_parser = subparsers.add_parser('sync', help='''
  Upload every version of a local Maven repository, skipping versions whose
  POM already exists in the repository, then upload the artifact-level
  maven-metadata.xml files.
  '''
)
sync_parser.add_argument('repository', help='The local Maven repository directory.')
sync_parser.add_argument('pattern', nargs='?', help='''
  Only sync below this path of the local repository, eg. com/example/lib.
  '''
)

purge_parser = subparsers.add_parser('purge', help='''
  Delete all releases and snapshots below a group or artifact.
  '''
)
purge_parser.add_argument('prefix', help='The dotted prefix, eg. com.example.lib.')


def build_basicauth(username, password):
  data = ('%s:%s' % (username, password)).encode('ISO-8859-1')
  return (b'Basic ' + base64.standard_b64encode (data)).decode('ascii')


def root_for(version):
  if coordinates.is_snapshot_version(version):
    return coordinates.SNAPSHOTS
  return coordinates.RELEASES


def upload_files(directory):
  """
  Returns the names of the files in *directory* that the repository accepts.
  """

  return sorted(
    x for x in os.listdir(directory)
    if os.path.isfile(os.path.join(directory, x)) and coordinates.is_allowed(x))


class Client:
  """
  Issues the requests against the repository. With *test*, the requests are
  printed as cURL command-lines instead of being sent.
  """

  def __init__(self, apiurl, headers, test=False, session=None):
    self.apiurl = apiurl.rstrip('/')
    self.headers = headers
    self.test = test
    self.session = session or requests.Session()
    self.failed = 0

  def url(self, *parts):
    return '/'.join((self.apiurl,) + parts)

  def exists(self, url):
    if self.test:
      return False
    response = self.session.head(url)
    return response.status_code == 200

  def put_file(self, url, filename):
    if self.test:
      command = ['curl', '-X', 'PUT', url]
      for key, value in self.headers.items():
        command += ['-H', '{}: {}'.format(key, value)]
      command += ['--data-binary', '@' + filename]
      print('$', ' '.join(map(shlex.quote, command)))
      return True
    with open(filename, 'rb') as fp:
      response = self.session.put(url, data=fp, headers=self.headers)
    if response.status_code != 200:
      print('    error: {} ({}): {}'.format(os.path.basename(filename),
            response.status_code, response.text.strip()))
      self.failed += 1
      return False
    print('    uploaded {}'.format(os.path.basename(filename)))
    return True

  def upload_version(self, directory, rel_path, version):
    root = root_for(version)
    for name in upload_files(directory):
      self.put_file(self.url(root, rel_path, name), os.path.join(directory, name))

  def version_exists(self, group, artifact, version):
    if self.test:
      return False
    response = self.session.get(self.url('api', 'files'), params={
      'group': group, 'artifact': artifact, 'version': version,
      'repository': root_for(version)})
    if response.status_code != 200:
      return False
    return bool(response.json().get('data'))

  def purge(self, prefix):
    url = self.url('api', 'purge')
    if self.test:
      command = ['curl', '-X', 'DELETE', url + '?prefix=' + prefix]
      for key, value in self.headers.items():
        command += ['-H', '{}: {}'.format(key, value)]
      print('$', ' '.join(map(shlex.quote, command)))
      return {'success': True, 'deleted': []}
    response = self.session.delete(url, params={'prefix': prefix}, headers=self.headers)
    data = response.json()
    if 'success' not in data:
      print('error:', data.get('error'))
      return {'success': False, 'deleted': []}
    return data


def do_upload(client, args):
  parts = args.coordinate.split(':')
  if len(parts) != 3 or not all(parts):
    print('error: invalid coordinate:', args.coordinate)
    return 1
  group, artifact, version = parts
  rel_path = '/'.join((coordinates.group_path(group), artifact, version))
  directory = os.path.join(args.repository, *rel_path.split('/'))
  if not os.path.isdir(directory):
    print('error: artifact directory does not exist:', directory)
    print("Have you run 'mvn install' or 'gradlew publishToMavenLocal'?")
    return 1

  if root_for(version) == coordinates.RELEASES and client.version_exists(group, artifact, version):
    print('error: version {} already exists in the repository.'.format(version))
    print('Version immutability enforced. Please bump the version number.')
    return 1

  print('Uploading {}:{}:{}'.format(group, artifact, version))
  client.upload_version(directory, rel_path, version)
  return 2 if client.failed else 0


def find_version_dirs(base):
  """
  Yields all directories below *base* that contain a POM file.
  """

  for root, dirs, files in os.walk(base):
    dirs.sort()
    if any(x.endswith('.pom') for x in files):
      yield root


def local_metadata_versions(filename):
  """
  Returns the versions listed in a local `maven-metadata.xml`. Unreadable
  metadata lists no versions and is not uploaded.
  """

  with open(filename, 'rb') as fp:
    data = fp.read()
  try:
    return list(md.parse_metadata(data).versions)
  except InvalidMetadata as exc:
    print('warning: {}: {}'.format(filename, exc.message))
    return []


def do_sync(client, args):
  repository = os.path.abspath(args.repository)
  base = os.path.join(repository, *args.pattern.split('/')) if args.pattern else repository
  if not os.path.isdir(base):
    print('error: directory does not exist:', base)
    return 1

  version_dirs = list(find_version_dirs(base))
  if not version_dirs:
    print('error: no artifacts found')
    return 1

  uploaded = skipped = 0
  for index, directory in enumerate(version_dirs):
    rel_path = os.path.relpath(directory, repository).replace(os.sep, '/')
    if rel_path.count('/') < 2:
      print('[{}/{}] Skipping (not a version directory): {}'.format(index + 1, len(version_dirs), rel_path))
      skipped += 1
      continue
    version = rel_path.rpartition('/')[2]
    root = root_for(version)
    print('[{}/{}] Processing: {}'.format(index + 1, len(version_dirs), rel_path))
    pom = next(x for x in upload_files(directory) if x.endswith('.pom'))
    if client.exists(client.url(root, rel_path, pom)):
      print('    skipping (already exists)')
      skipped += 1
      continue
    client.upload_version(directory, rel_path, version)
    uploaded += 1

  print('Uploading maven-metadata.xml files...')
  version_dirs = set(version_dirs)
  for root_dir, dirs, files in os.walk(base):
    dirs.sort()
    if root_dir in version_dirs or coordinates.METADATA_FILE not in files:
      continue
    rel_path = os.path.relpath(root_dir, repository).replace(os.sep, '/')
    versions = [x for x in dirs if os.path.join(root_dir, x) in version_dirs]
    if not versions:
      versions = local_metadata_versions(os.path.join(root_dir, coordinates.METADATA_FILE))
    for root in sorted(set(map(root_for, versions))):
      for name in sorted(files):
        if not (coordinates.is_metadata(name) and coordinates.is_allowed(name)):
          continue
        url = client.url(root, rel_path, name)
        if name == coordinates.METADATA_FILE and client.exists(url):
          print('    skipping existing: {}/{}/{}'.format(root, rel_path, name))
          break
        client.put_file(url, os.path.join(root_dir, name))

  print('Sync complete!')
  print('  Total versions: {}'.format(len(version_dirs)))
  print('  Uploaded:       {}'.format(uploaded))
  print('  Skipped:        {}'.format(skipped))
  if client.failed:
    print('  Failed uploads: {}'.format(client.failed))
    return 2
  return 0


def do_purge(client, args):
  result = client.purge(args.prefix)
  for key in result['deleted']:
    print('deleted', key)
  for error in result.get('errors') or []:
    print('error: {}: {}'.format(error['root'], error['error']))
  return 0 if result['success'] else 2


def main(argv=None, session=None):
  args = parser.parse_args(argv)

  # Split username and password. Request the password if it was omitted.
  headers = {}
  if args.auth:
    username, password = args.auth.partition(':')[::2]
    if ':' not in args.auth:
      password = getpass.getpass('Password for {}:'.format(username))
      if not password:
        return 1
  else:
    username = os.getenv('MAVEN_PUBLISH_USERNAME')
    password = os.getenv('MAVEN_PUBLISH_PASSWORD')
  if username and password:
    headers['Authorization'] = build_basicauth(username, password)

  client = Client(args.apiurl, headers, args.test, session)
  if args.command == 'upload':
    return do_upload(client, args)
  elif args.command == 'sync':
    return do_sync(client, args)
  elif args.command == 'purge':
    return do_purge(client, args)


def main_and_exit(argv=None):
  sys.exit(main(argv))


if __name__ == '__main__':
  main_and_exit()
