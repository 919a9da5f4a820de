from .database import get_conn, get_db, write_transaction

__all__ = ["get_conn", "get_db", "write_transaction"]
