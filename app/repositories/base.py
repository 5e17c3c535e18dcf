"""
Base Repository - FoodEval Scoring Engine
app/repositories/base.py

Base repository class with Snowflake connection management and common utilities.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Generator, List, Optional
from uuid import UUID

import snowflake.connector
from snowflake.connector import DictCursor
from snowflake.connector.errors import DatabaseError, InterfaceError, ProgrammingError

from app.core.exceptions import (
    DatabaseConnectionException,
    DuplicateEntityException,
    RepositoryException,
)
from app.services.snowflake import get_snowflake_connection


class BaseRepository:
    """Base repository with Snowflake connection management."""

    @contextmanager
    def get_connection(self) -> Generator[snowflake.connector.SnowflakeConnection, None, None]:
        """Context manager for Snowflake connections."""
        conn = None
        try:
            conn = get_snowflake_connection()
            yield conn
        except InterfaceError as e:
            raise DatabaseConnectionException(f"Failed to connect to Snowflake: {e}")
        finally:
            if conn:
                conn.close()

    @contextmanager
    def get_cursor(self, dict_cursor: bool = True) -> Generator[Any, None, None]:
        """Context manager for Snowflake cursors with automatic connection cleanup."""
        with self.get_connection() as conn:
            cursor = conn.cursor(DictCursor) if dict_cursor else conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()

    def execute_query(
        self,
        sql: str,
        params: Optional[tuple] = None,
        fetch_one: bool = False,
        fetch_all: bool = False,
        commit: bool = False,
    ) -> Optional[Any]:
        """
        Execute a SQL query with error handling.

        Args:
            sql: SQL query string
            params: Query parameters
            fetch_one: Return single row
            fetch_all: Return all rows
            commit: Commit transaction after execution

        Returns:
            Query results or the affected row count
        """
        with self.get_cursor() as cursor:
            try:
                cursor.execute(sql, params or ())

                if commit:
                    cursor.connection.commit()

                if fetch_one:
                    return cursor.fetchone()
                elif fetch_all:
                    return cursor.fetchall()

                return cursor.rowcount

            except ProgrammingError as e:
                error_msg = str(e).upper()
                if "UNIQUE" in error_msg or "DUPLICATE" in error_msg:
                    raise DuplicateEntityException(str(e))
                raise RepositoryException(f"Query error: {e}")
            except DatabaseError as e:
                raise RepositoryException(f"Database error: {e}")

    def execute_many(self, statements: List[tuple]) -> None:
        """
        Run several (sql, params) statements in one transaction.

        Rolls back and raises RepositoryException if any statement fails.
        """
        with self.get_cursor() as cursor:
            conn = cursor.connection
            try:
                cursor.execute("BEGIN")
                for sql, params in statements:
                    cursor.execute(sql, params or ())
                conn.commit()
            except (ProgrammingError, DatabaseError) as e:
                conn.rollback()
                raise RepositoryException(f"Transaction failed: {e}")

    def uuid_to_str(self, uuid_val: Optional[UUID]) -> Optional[str]:
        """Convert UUID to string for Snowflake storage."""
        return str(uuid_val) if uuid_val else None

    def str_to_uuid(self, uuid_str: Optional[str]) -> Optional[UUID]:
        """Convert string from Snowflake to UUID."""
        return UUID(uuid_str) if uuid_str else None

    def to_decimal(self, value: Any) -> Optional[Decimal]:
        """Snowflake NUMBER columns come back as Decimal, int or float."""
        if value is None:
            return None
        return value if isinstance(value, Decimal) else Decimal(str(value))

    def normalize_timestamp(self, dt: Optional[datetime]) -> Optional[datetime]:
        """Ensure timestamp is UTC-aware."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    def row_to_dict(self, row: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Convert Snowflake row (uppercase keys) to lowercase dict."""
        if row is None:
            return {}
        return {k.lower(): v for k, v in row.items()}

    def build_insert_query(self, table_name: str, data: Dict[str, Any]) -> tuple[str, List[Any]]:
        """
        Build an INSERT for one row.

        Args:
            table_name: Name of the table
            data: Dictionary of column -> value

        Returns:
            Tuple of (sql_string, params_list)
        """
        columns = [column.upper() for column in data]
        placeholders = ", ".join(["%s"] * len(columns))
        sql = f"INSERT INTO {table_name} ({', '.join(columns)}) VALUES ({placeholders})"
        return sql, list(data.values())

    def build_merge_query(
        self,
        table_name: str,
        data: Dict[str, Any],
        key_column: str = "id",
    ) -> tuple[str, List[Any]]:
        """
        Build a MERGE (upsert) keyed on ``key_column``.

        Args:
            table_name: Name of the table
            data: Dictionary of column -> value, must contain ``key_column``
            key_column: Column identifying the row

        Returns:
            Tuple of (sql_string, params_list)
        """
        key = key_column.upper()
        columns = [column.upper() for column in data]
        values = list(data.values())
        update_columns = [c for c in columns if c != key]

        set_clauses = ", ".join(f"{c} = %s" for c in update_columns)
        placeholders = ", ".join(["%s"] * len(columns))

        sql = f"""
            MERGE INTO {table_name} t
            USING (SELECT %s AS {key}) s
            ON t.{key} = s.{key}
            WHEN MATCHED THEN UPDATE SET {set_clauses}
            WHEN NOT MATCHED THEN INSERT ({', '.join(columns)}) VALUES ({placeholders})
        """

        params = [data[key_column]]
        params.extend(v for c, v in zip(columns, values) if c != key)
        params.extend(values)
        return sql, params
