"""
Exception hierarchy.

SmartQueryError is the root; the API layer maps each subclass to an HTTP
status in main.py.
"""
from typing import Any, Optional


class SmartQueryError(Exception):
    """Base error. ``context`` is free text attached by the caller."""

    def __init__(self, message: str, context: str = ""):
        super().__init__(message)
        self.context = context


class ConfigurationError(SmartQueryError):
    """A required collaborator or credential is missing. Fatal, never retried."""

    def __init__(self, component: str, message: str):
        super().__init__(f"Configuration error for {component}: {message}")
        self.component = component


class SchemaError(SmartQueryError):
    """Schema metadata or the schema index could not be read or written."""

    def __init__(self, message: str, table: str = ""):
        super().__init__(message)
        self.table = table

    @classmethod
    def connection_failed(cls, message: str) -> "SchemaError":
        return cls(f"Failed to retrieve schema: {message}")

    @classmethod
    def index_corrupted(cls, message: str) -> "SchemaError":
        return cls(f"Schema index is corrupted: {message}")


class UnsafeQueryError(SmartQueryError):
    """Generated SQL failed the query guard."""

    NON_SELECT = "non_select"
    FORBIDDEN_TABLE = "forbidden_table"
    DANGEROUS_PATTERN = "dangerous_pattern"

    def __init__(self, message: str, sql: str, violation: str):
        super().__init__(message)
        self.sql = sql
        self.violation = violation

    @classmethod
    def non_select(cls, sql: str) -> "UnsafeQueryError":
        return cls("Only SELECT queries are allowed", sql, cls.NON_SELECT)

    @classmethod
    def forbidden_table(cls, sql: str, table: str) -> "UnsafeQueryError":
        return cls(f"Access to table '{table}' is forbidden", sql, cls.FORBIDDEN_TABLE)

    @classmethod
    def dangerous_pattern(cls, sql: str, pattern: str) -> "UnsafeQueryError":
        return cls(f"Dangerous SQL pattern detected: {pattern}", sql, cls.DANGEROUS_PATTERN)


class LLMError(SmartQueryError):
    """A completion or embedding provider call failed."""

    def __init__(self, message: str, driver: str, response: Optional[Any] = None):
        super().__init__(message)
        self.driver = driver
        self.response = response

    @classmethod
    def connection_failed(cls, driver: str, message: str) -> "LLMError":
        return cls(f"Failed to connect to {driver}: {message}", driver)

    @classmethod
    def invalid_response(cls, driver: str, message: str, response: Optional[Any] = None) -> "LLMError":
        return cls(f"Invalid response from {driver}: {message}", driver, response)

    @classmethod
    def api_error(cls, driver: str, message: str, response: Optional[Any] = None) -> "LLMError":
        return cls(f"API error from {driver}: {message}", driver, response)
