"""SQL-backed data proxy via SQLAlchemy Core."""

from bizpipe.infrastructure.database.engine import create_db_engine
from bizpipe.infrastructure.database.proxy import SqlDataProxy

__all__ = [
    "SqlDataProxy",
    "create_db_engine",
]
