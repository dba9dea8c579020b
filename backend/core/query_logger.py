"""Audit log for executed queries and guard rejections."""
import logging
from datetime import datetime, timezone
from typing import Optional

audit_logger = logging.getLogger("smartquery.audit")


class QueryLogger:
    def __init__(self, enabled: bool = True, logger: Optional[logging.Logger] = None):
        self.enabled = enabled
        self.logger = logger or audit_logger

    def log_query(
        self,
        question: str,
        sql: str,
        driver: str,
        duration: float,
        row_count: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        if not self.enabled:
            return

        context = {
            "question": question,
            "sql": sql,
            "driver": driver,
            "duration_ms": round(duration * 1000, 2),
            "row_count": row_count,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if error:
            context["error"] = error
            self.logger.error("Smart Query failed: %s", context, extra={"audit": context})
        else:
            self.logger.info("Smart Query executed: %s", context, extra={"audit": context})

    def log_security_violation(self, question: str, sql: str, violation: str) -> None:
        if not self.enabled:
            return

        context = {
            "question": question,
            "sql": sql,
            "violation": violation,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self.logger.warning("Smart Query security violation: %s", context, extra={"audit": context})
