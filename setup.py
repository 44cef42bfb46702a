
from setuptools import find_packages, setup

setup(
  name = 'mavenbucket',
  version = '1.0.0.dev0',
  description = 'Maven repository backed by an object store.',
  packages = find_packages(include=['mavenbucket', 'mavenbucket.*']),
  py_modules = ['mavenbucket_server_config'],
  python_requires = '>=3.9',
  install_requires = [
    'flask>=2.3',
    'werkzeug>=2.3',
    'defusedxml>=0.7',
    'requests>=2.25',
    'azure-storage-blob>=12.14',
  ],
  extras_require = {
    'test': ['pytest>=7'],
  },
  entry_points = {
    'console_scripts': [
      'mavenbucket-cli=mavenbucket.web.cli:main_and_exit',
      'mavenbucket-server=mavenbucket.web.server:main',
    ]
  }
)
