"""Record store: asyncpg pool, SQL queries and the ResultStore adapter."""

from heritage.db.connection import init_db, init_schema, close_db
from heritage.db.models import Translation, Upload
from heritage.db.store import PostgresResultStore, ResultStore

__all__ = [
    'init_db',
    'init_schema',
    'close_db',
    'Translation',
    'Upload',
    'ResultStore',
    'PostgresResultStore',
]
