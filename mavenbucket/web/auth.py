"""
Authentication layer for the publishing routes.
"""

from mavenbucket.errors import Unauthorized
from typing import *
import abc
import flask
import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)


class Authorizer(metaclass=abc.ABCMeta):

  @abc.abstractmethod
  def do_authorization(self, request: flask.Request) -> str:
    """
    Validate the credentials of *request* and return the account name.

    Raises:
      AuthorizationError: If the request is not authorized.
    """


class AuthorizationError(Unauthorized):
  pass


class BasicAuthorizer(Authorizer):
  """
  Accepts HTTP Basic credentials matching a single configured username and
  password. The password may also be given hashed as `<algorithm>:<hexdigest>`
  by setting *hashed* to #True.

  If no credentials are configured, every request is rejected.
  """

  def __init__(self, username: Optional[str], password: Optional[str],
               hashed: bool = False, encoding: str = 'utf8'):
    self.username = username
    self.password = password
    self.hashed = hashed
    self.encoding = encoding
    if hashed and password:
      method = password.partition(':')[0]
      if method not in hashlib.algorithms_available:
        raise ValueError('unknown hash algorithm: {}'.format(method))

  def _check_password(self, password):
    if self.hashed:
      method, value = self.password.partition(':')[::2]
      password = hashlib.new(method, password.encode(self.encoding)).hexdigest()
      return hmac.compare_digest(password, value)
    return hmac.compare_digest(password.encode(self.encoding), self.password.encode(self.encoding))

  def do_authorization(self, request: flask.Request) -> str:
    if not self.username or not self.password:
      logger.error('Auth credentials not configured')
      raise AuthorizationError()
    auth = request.authorization
    if not auth or auth.type != 'basic' or auth.username is None or auth.password is None:
      raise AuthorizationError()
    username_ok = hmac.compare_digest(auth.username.encode(self.encoding), self.username.encode(self.encoding))
    if not (self._check_password(auth.password) and username_ok):
      raise AuthorizationError('Invalid credentials')
    return auth.username
