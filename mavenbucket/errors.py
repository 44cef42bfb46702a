"""
Error taxonomy of the repository. Every error carries the HTTP status code
that the web layer answers with.
"""


class RepositoryError(Exception):
  """
  Base class for errors raised by the repository core. If #expose is #False,
  the message is logged but never sent to the client.
  """

  status_code = 500
  expose = True

  def __init__(self, message=None):
    super().__init__(message or self.default_message())

  @classmethod
  def default_message(cls):
    return cls.__name__

  @property
  def message(self):
    return str(self)


class MalformedPath(RepositoryError):
  status_code = 400

  @classmethod
  def default_message(cls):
    return 'Invalid Maven path format'


class UnsupportedFileType(RepositoryError):
  status_code = 400

  @classmethod
  def default_message(cls):
    return 'Invalid file type'


class Unauthorized(RepositoryError):
  status_code = 401

  @classmethod
  def default_message(cls):
    return 'Authentication required'


class NotFound(RepositoryError):
  status_code = 404

  @classmethod
  def default_message(cls):
    return 'Not found'


class AlreadyExists(RepositoryError):
  status_code = 409


class ConcurrentModification(RepositoryError):
  status_code = 409

  @classmethod
  def default_message(cls):
    return 'Metadata was modified concurrently, retry the upload'


class InvalidMetadata(RepositoryError):
  status_code = 500

  @classmethod
  def default_message(cls):
    return 'Invalid maven-metadata.xml'


class NotDeterminable(RepositoryError):
  status_code = 500

  @classmethod
  def default_message(cls):
    return 'Could not determine latest version'
