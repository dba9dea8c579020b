"""
Query guard — turns raw LLM output into SQL and rejects anything that is not
a single read-only statement.

Validation order: select-only, forbidden tables, dangerous patterns. The
first failing check raises UnsafeQueryError; everything else here is a pure
classification helper.
"""
import logging
import re
from typing import Optional

from core.exceptions import UnsafeQueryError
from models.guard import GuardConfig

logger = logging.getLogger(__name__)

ERROR_SENTINEL = "-- ERROR:"

MODIFY_KEYWORDS = [
    "INSERT", "UPDATE", "DELETE", "DROP", "ALTER", "CREATE",
    "TRUNCATE", "REPLACE", "MERGE", "GRANT", "REVOKE",
]

DANGEROUS_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("stacked statement", re.compile(r";\s*(?:DROP|DELETE|UPDATE|INSERT|ALTER|CREATE|TRUNCATE|EXEC|EXECUTE)", re.I)),
    ("file write", re.compile(r"\bINTO\s+(?:OUTFILE|DUMPFILE)\b", re.I)),
    ("file read", re.compile(r"\bLOAD_FILE\s*\(", re.I)),
    ("BENCHMARK()", re.compile(r"\bBENCHMARK\s*\(", re.I)),
    ("SLEEP()", re.compile(r"\bSLEEP\s*\(", re.I)),
    ("WAITFOR DELAY", re.compile(r"\bWAITFOR\s+DELAY\b", re.I)),
    # A bare "--" ending a line; flags harmless trailing comments too
    ("trailing line comment", re.compile(r"--\s*$", re.M)),
    ("block comment", re.compile(r"/\*.*\*/", re.S)),
]

_ERROR_LINE = re.compile(r"^--\s*ERROR:\s*(.+)$", re.M)
_FENCE_OPEN = re.compile(r"^```(?:sql)?\s*", re.I)
_FENCE_CLOSE = re.compile(r"\s*```$")
_SELECT_TAIL = re.compile(r"SELECT\b.+$", re.I | re.S)
_STARTS_WITH_SELECT = re.compile(r"^\s*SELECT\b", re.I)
_MODIFY_RES = [re.compile(rf"\b{kw}\b", re.I) for kw in MODIFY_KEYWORDS]


def clean_markdown(sql: str) -> str:
    """Remove a leading ```sql fence and a trailing ``` fence."""
    sql = _FENCE_OPEN.sub("", sql.strip())
    sql = _FENCE_CLOSE.sub("", sql)
    return sql.strip()


def _word_pattern(word: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(word)}\b", re.I)


class QueryGuard:
    def __init__(self, config: Optional[GuardConfig] = None):
        self.config = config or GuardConfig()
        self._forbidden = [(t, _word_pattern(t)) for t in self.config.forbidden_tables]

    def validate(self, sql: str) -> None:
        """Raise UnsafeQueryError if ``sql`` may not be executed."""
        sql = clean_markdown(sql)

        if self.config.select_only and not self.is_select_only(sql):
            raise UnsafeQueryError.non_select(sql)

        table = self.find_forbidden_table(sql)
        if table is not None:
            raise UnsafeQueryError.forbidden_table(sql, table)

        for label, pattern in DANGEROUS_PATTERNS:
            if pattern.search(sql):
                raise UnsafeQueryError.dangerous_pattern(sql, label)

    def is_select_only(self, sql: str) -> bool:
        sql = clean_markdown(sql)
        if not _STARTS_WITH_SELECT.match(sql):
            return False
        return not any(p.search(sql) for p in _MODIFY_RES)

    def contains_forbidden_tables(self, sql: str) -> bool:
        return self.find_forbidden_table(sql) is not None

    def find_forbidden_table(self, sql: str) -> Optional[str]:
        """First configured forbidden table mentioned anywhere in ``sql``."""
        for table, pattern in self._forbidden:
            if pattern.search(sql):
                return table
        return None

    def extract_sql(self, response: str) -> str:
        """Pull the SQL statement out of an LLM response (fences, preamble, ';')."""
        response = response.strip()

        # Error sentinels pass through untouched; callers check is_error_response()
        if _ERROR_LINE.search(response):
            return response

        response = clean_markdown(response)

        match = _SELECT_TAIL.search(response)
        if match:
            response = match.group(0)

        response = response.rstrip()
        if response.endswith(";"):
            response = response[:-1]
        return response.strip()

    def is_error_response(self, text: str) -> bool:
        return text.strip().startswith(ERROR_SENTINEL)

    def get_error_message(self, text: str) -> str:
        match = _ERROR_LINE.search(text)
        return match.group(1).strip() if match else "Unknown error"
