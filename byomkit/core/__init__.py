"""
BYOMKit Core
============

Core utilities and shared functionality for BYOMKit modules.
"""

from .config import Config
from .database import Database, resolve_db_path
from .logging_service import LoggingService, db_log, logger

__all__ = ['Config', 'Database', 'resolve_db_path', 'LoggingService', 'db_log', 'logger']
