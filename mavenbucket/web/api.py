"""
The JSON API: browsing the repository, deploying single files and purging.
"""

from mavenbucket.coordinates import ROOTS, RELEASES
from mavenbucket.purge import purge as purge_roots
from .config import config
from .decorators import BadRequest, json_response, require_args, require_auth
from flask import Blueprint, current_app, g, request

app = Blueprint('api', __name__)


def get_catalog():
  root = request.args.get('repository', RELEASES)
  if root not in ROOTS:
    raise BadRequest('Invalid repository: {}'.format(root))
  return config.catalog(root)


@app.route('/groups', methods=['GET'])
@json_response()
def groups():
  return get_catalog().list_groups()


@app.route('/artifacts', methods=['GET'])
@json_response()
def artifacts():
  group = require_args('group')
  return get_catalog().list_artifacts(group)


@app.route('/versions', methods=['GET'])
@json_response()
def versions():
  group, artifact = require_args('group', 'artifact')
  return get_catalog().list_versions(group, artifact)


@app.route('/files', methods=['GET'])
@json_response()
def files():
  group, artifact, version = require_args('group', 'artifact', 'version')
  return get_catalog().list_files(group, artifact, version)


@app.route('/latest', methods=['GET'])
@json_response()
def latest():
  group, artifact = require_args('group', 'artifact')
  return get_catalog().get_latest(group, artifact)


@app.route('/deploy', methods=['POST'])
@json_response()
@require_auth
def deploy():
  """
  Deploys the request body as a single file. The server computes the file
  name (timestamped for snapshots) and updates the metadata.

  Query parameters: `group`, `artifact`, `version`, `extension` and the
  optional `classifier`.
  """

  group, artifact, version, extension = require_args('group', 'artifact', 'version', 'extension')
  classifier = request.args.get('classifier') or None
  result = config.publisher().deploy(group, artifact, version, extension,
                                     request.get_data(), classifier)
  current_app.logger.info('%s deployed %s/%s', g.user, result.root, result.key)
  return result.to_json()


@app.route('/purge', methods=['DELETE'])
@json_response(envelope=False)
@require_auth
def purge():
  prefix = require_args('prefix')
  result = purge_roots(config.roots, prefix)
  current_app.logger.info('%s purged %s (%d objects)', g.user,
                          prefix, len(result.deleted))
  return result.to_json(), 200 if result.success else 500
