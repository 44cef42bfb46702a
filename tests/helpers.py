
from mavenbucket.storage.base import iter_list


def all_keys(store, prefix=''):
  """
  Returns every key below *prefix*, following the store's pagination.
  """

  return [key for page in iter_list(store, prefix) for key in page.keys]
