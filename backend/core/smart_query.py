"""
SmartQuery — question in, validated SQL and rows out.

    schema for question → prompts → LLM → extract → guard → execute

Overrides (tables / connection / driver) return a modified copy so a shared
instance is never mutated by a request.
"""
import copy
import logging
import re
import time
from typing import Any, Callable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import SmartQueryError, UnsafeQueryError
from core.query_guard import QueryGuard
from core.query_logger import QueryLogger
from core.schema_manager import SchemaManager
from models.query import QueryResult
from prompts.sql_generation import sql_system_prompt, sql_user_prompt

logger = logging.getLogger(__name__)

# Trailing "LIMIT n", "LIMIT n, m" or "LIMIT n OFFSET m"
_HAS_LIMIT = re.compile(r"\bLIMIT\s+\d+(?:\s*,\s*\d+|\s+OFFSET\s+\d+)?\s*$", re.I)


class SmartQuery:
    def __init__(
        self,
        llm_client_for: Callable[[Optional[str]], Any],
        manager_for: Callable[[Optional[str]], SchemaManager],
        engine_for: Callable[[Optional[str]], Engine],
        guard: QueryGuard,
        query_logger: QueryLogger,
        default_driver: str,
        max_results: int = 1000,
    ):
        self.llm_client_for = llm_client_for
        self.manager_for = manager_for
        self.engine_for = engine_for
        self.guard = guard
        self.query_logger = query_logger
        self.default_driver = default_driver
        self.max_results = max_results
        self._tables: Optional[list[str]] = None
        self._connection: Optional[str] = None
        self._driver: Optional[str] = None

    # ── Overrides ─────────────────────────────────────────────────────────────

    def tables(self, tables: Optional[list[str]]) -> "SmartQuery":
        clone = copy.copy(self)
        clone._tables = list(tables) if tables else None
        return clone

    def connection(self, name: Optional[str]) -> "SmartQuery":
        clone = copy.copy(self)
        clone._connection = name
        return clone

    def using(self, driver: Optional[str]) -> "SmartQuery":
        clone = copy.copy(self)
        clone._driver = driver
        return clone

    @property
    def driver_name(self) -> str:
        return self._driver or self.default_driver

    # ── Public API ────────────────────────────────────────────────────────────

    def to_sql(self, question: str) -> str:
        """Generate and validate SQL without executing it."""
        return self._generate_sql(question)

    def ask(self, question: str) -> list[dict[str, Any]]:
        return self.raw(question).data

    def raw(self, question: str) -> QueryResult:
        """Generate, validate and execute; logs every outcome to the audit log."""
        start = time.monotonic()
        sql = ""
        try:
            sql = self._generate_sql(question)
            data = self._execute(sql)
        except UnsafeQueryError as e:
            self.query_logger.log_security_violation(question, e.sql, e.violation)
            raise
        except SmartQueryError as e:
            self.query_logger.log_query(question, sql, self.driver_name, time.monotonic() - start, error=str(e))
            raise

        duration = time.monotonic() - start
        self.query_logger.log_query(question, sql, self.driver_name, duration, len(data))
        return QueryResult(
            question=question,
            sql=sql,
            data=data,
            count=len(data),
            duration=duration,
            driver=self.driver_name,
            mode=self.manager_for(self._connection).get_mode(),
        )

    # ── Internals ─────────────────────────────────────────────────────────────

    def _generate_sql(self, question: str) -> str:
        manager = self.manager_for(self._connection)
        schema = manager.get_schema_for_question(question, self._tables)

        system = sql_system_prompt.format(schema=schema)
        user = sql_user_prompt.format(question=question)

        llm = self.llm_client_for(self._driver)
        response = llm.complete(system, user)
        logger.debug("LLM (%s) response: %s", self.driver_name, response[:200])

        sql = self.guard.extract_sql(response)
        if self.guard.is_error_response(sql):
            raise SmartQueryError(self.guard.get_error_message(sql))

        self.guard.validate(sql)
        return sql

    def _execute(self, sql: str) -> list[dict[str, Any]]:
        if not _HAS_LIMIT.search(sql):
            sql = f"{sql} LIMIT {self.max_results}"

        engine = self.engine_for(self._connection)
        try:
            # no_parameters: run the text as-is so ':' and '%' in literals survive
            with engine.connect().execution_options(no_parameters=True) as conn:
                result = conn.exec_driver_sql(sql)
                cols = list(result.keys())
                return [dict(zip(cols, row)) for row in result.fetchall()]
        except SQLAlchemyError as e:
            raise SmartQueryError(f"Query execution failed: {e}") from e
