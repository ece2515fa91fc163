# ==============================================
# STORAGE (MySQL / MariaDB)
# ==============================================
#
# This package handles all database round trips:
# connecting, running schema statements and upserts, and
# reading the live schema back at startup.
#
# Modules:
# --------
# - mysql_client.py    → MySQL connection and operations
#
# ==============================================

from .mysql_client import MySQLClient

__all__ = ["MySQLClient"]
