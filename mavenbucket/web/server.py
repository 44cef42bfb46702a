"""
Creates the Flask application.
"""

from . import api, repository
from .config import RepositoryConfig, init_app
from .decorators import INTERNAL_ERROR, json_error, text_response_body
from flask import Flask, request, Response
import argparse
import importlib
import logging

CORS_HEADERS = {
  'Access-Control-Allow-Origin': '*',
  'Access-Control-Allow-Methods': 'GET, PUT, POST, DELETE, OPTIONS',
  'Access-Control-Allow-Headers': 'Content-Type, Authorization',
}


def _error(message, status):
  if request.path.startswith('/api/'):
    return json_error(message, status)
  return text_response_body(message, status)


def create_app(cfg: RepositoryConfig) -> Flask:
  app = Flask(__name__)
  init_app(app, cfg)
  app.register_blueprint(api.app, url_prefix='/api')
  app.register_blueprint(repository.app)

  @app.before_request
  def preflight():
    if request.method == 'OPTIONS':
      return Response(status=204, headers=CORS_HEADERS)

  @app.after_request
  def cors(response):
    response.headers.setdefault('Access-Control-Allow-Origin', '*')
    return response

  @app.errorhandler(404)
  def not_found(exc):
    return _error('Not found', 404)

  @app.errorhandler(405)
  def method_not_allowed(exc):
    return _error('Method not allowed', 405)

  @app.errorhandler(500)
  def internal_error(exc):
    return _error(INTERNAL_ERROR, 500)

  return app


def create_app_from_module(name: str = 'mavenbucket_server_config') -> Flask:
  """
  Creates the application from a configuration module that exposes a
  #RepositoryConfig as `config`. This is the WSGI entry point, eg.
  `gunicorn 'mavenbucket.web.server:create_app_from_module()'`.
  """

  module = importlib.import_module(name)
  logging.basicConfig(
    level=getattr(module, 'log_level', 'INFO'),
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
  return create_app(module.config)


def main(argv=None):
  parser = argparse.ArgumentParser(prog='mavenbucket-server')
  parser.add_argument('--config', default='mavenbucket_server_config',
    help='The configuration module. Defaults to %(default)s.')
  parser.add_argument('--host', default='127.0.0.1')
  parser.add_argument('--port', type=int, default=8080)
  parser.add_argument('--debug', action='store_true')
  args = parser.parse_args(argv)
  app = create_app_from_module(args.config)
  app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
  main()
