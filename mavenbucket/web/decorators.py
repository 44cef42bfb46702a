"""
Decorators that turn the return values and errors of route handlers into
responses. API routes answer with `{"data": ..., "error": ...}` JSON, the
repository routes with plain text.
"""

from mavenbucket.errors import RepositoryError
from .auth import AuthorizationError
from .config import config
from flask import current_app, g, request, Response
from werkzeug.exceptions import HTTPException
import functools
import json

INTERNAL_ERROR = 'Internal server error'
AUTHENTICATE = 'Basic realm="Maven Repository"'


def _error_info(exc):
  """
  Returns the status code and the client-visible message for *exc*.
  """

  if isinstance(exc, RepositoryError):
    if not exc.expose:
      current_app.logger.error('%s: %s', type(exc).__name__, exc)
      return exc.status_code, INTERNAL_ERROR
    return exc.status_code, exc.message
  if isinstance(exc, HTTPException):
    return exc.code, exc.description or exc.name
  current_app.logger.exception(exc)
  return 500, INTERNAL_ERROR


def json_error(message, status):
  return json_response_body({'data': None, 'error': message}, status)


def json_response_body(body, status=200, headers=None):
  return Response(json.dumps(body), status=status, headers=headers,
                  mimetype='application/json')


def text_response_body(text, status=200, headers=None):
  return Response(text, status=status, headers=headers, mimetype='text/plain')


def _auth_headers(status):
  return {'WWW-Authenticate': AUTHENTICATE} if status == 401 else None


def json_response(envelope=True):
  """
  Sends the handler's return value as JSON. With *envelope*, the value is
  wrapped as `{"data": value, "error": null}`. The handler may return a
  tuple of the value and a status code.
  """

  def decorator(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
      try:
        result = func(*args, **kwargs)
      except Exception as exc:
        status, message = _error_info(exc)
        return json_response_body({'data': None, 'error': message}, status, _auth_headers(status))
      if isinstance(result, tuple):
        result, status = result
      else:
        status = 200
      if envelope:
        result = {'data': result, 'error': None}
      return json_response_body(result, status)
    return wrapper
  return decorator


def text_response(func):
  """
  Like #json_response() but for plain-text routes. The handler may also
  return a full #Response.
  """

  @functools.wraps(func)
  def wrapper(*args, **kwargs):
    try:
      result = func(*args, **kwargs)
    except Exception as exc:
      status, message = _error_info(exc)
      return text_response_body(message, status, _auth_headers(status))
    if isinstance(result, Response):
      return result
    return text_response_body(result)
  return wrapper


def require_auth(func):
  """
  Authorizes the request with the configured authorizer and stores the
  account name in `g.user`. Must be applied inside #json_response() or
  #text_response().
  """

  @functools.wraps(func)
  def wrapper(*args, **kwargs):
    try:
      g.user = config.auth.do_authorization(request)
    except AuthorizationError:
      current_app.logger.warning('Rejected credentials for %s %s', request.method, request.path)
      raise
    return func(*args, **kwargs)
  return wrapper


def require_args(*names):
  """
  Returns the query parameters *names*, raising a 400 error listing all of
  them if any is missing.
  """

  values = [request.args.get(x, '').strip() for x in names]
  if not all(values):
    noun = 'parameter' if len(names) == 1 else 'parameters'
    raise BadRequest('Missing required {}: {}'.format(noun, ', '.join(names)))
  return values if len(values) > 1 else values[0]


class BadRequest(RepositoryError):
  status_code = 400
