import os
import sqlite3
from .config import Config


def resolve_db_path(key):
    """
    Resolve a database path using the framework config hierarchy:
    Flask app config, then the Config class, then the environment.
    """
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val:
            return val
    except RuntimeError:
        # Outside of application context
        pass
    if hasattr(Config, key):
        return getattr(Config, key)
    return os.getenv(key, os.path.join('databases', f"{key.lower()}.db"))


class Database:

    @staticmethod
    def connect(path):
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        conn = sqlite3.connect(path)
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def row_to_dict(row):
        """Convert a sqlite3.Row into a plain dict (None passes through)"""
        if row is None:
            return None
        return {key: row[key] for key in row.keys()}
