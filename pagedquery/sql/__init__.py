""" A query service backed by an SQL database

Runs queries against SqlAlchemy tables and returns results in batches, with cursors.
Useful for tests, and for serving paginated results straight from a database.
"""

from .service import SqlQueryService
from .settings import ServiceSettings
