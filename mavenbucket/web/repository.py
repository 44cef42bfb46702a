"""
The Maven repository layout, as used by build tools. Files are uploaded
with PUT and downloaded with GET below `/releases/` and `/snapshots/`.
"""

from mavenbucket.coordinates import RELEASES, SNAPSHOTS, parse_path
from mavenbucket.errors import NotFound
from mavenbucket.publish import content_type
from .config import config
from .decorators import require_auth, text_response
from flask import Blueprint, current_app, g, request, Response

app = Blueprint('repository', __name__)

CACHE_CONTROL = 'public, max-age=3600'


def read(root, path):
  parts = path.split('/')
  if any(x in ('', '.', '..') for x in parts):
    raise NotFound()
  obj = config.roots[root].get(path)
  if obj is None:
    raise NotFound()
  response = Response(obj.data, mimetype=content_type(path))
  response.headers['Cache-Control'] = CACHE_CONTROL
  if obj.etag:
    response.set_etag(obj.etag)
  if obj.info.uploaded:
    response.last_modified = obj.info.uploaded
  return response


@require_auth
def write(root, path):
  location = parse_path('/{}/{}'.format(root, path))
  data = request.get_data()
  key = config.publisher().publish(location, data)
  current_app.logger.info('%s uploaded %s/%s (%d bytes)', g.user, root, key, len(data))
  return 'OK'


@app.route('/releases/<path:path>', methods=['GET', 'PUT'])
@text_response
def releases(path):
  if request.method == 'PUT':
    return write(RELEASES, path)
  return read(RELEASES, path)


@app.route('/snapshots/<path:path>', methods=['GET', 'PUT'])
@text_response
def snapshots(path):
  if request.method == 'PUT':
    return write(SNAPSHOTS, path)
  return read(SNAPSHOTS, path)
