"""Database adapters for SQLStash."""

from sqlstash.adapters.dbapi import DBAPIConnection, DBAPIStatement

__all__ = ("DBAPIConnection", "DBAPIStatement")
