"""
Analytics sink for aggregated verifications (Supabase `validation_logs`).
Non-critical: write failures are logged and swallowed.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.models.validation import AggregatedValidationResult

logger = logging.getLogger(__name__)

VALIDATION_LOGS_TABLE = "validation_logs"


def build_log_row(result: AggregatedValidationResult, user_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "product_name": result.product_name,
        "result_summary": result.summary,
        "risk_level": result.risk_level.value,
        "confidence": result.confidence,
        "sources_checked": {
            "internal": bool(result.internal.get("found")),
            "external": result.external.found,
        },
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


class ValidationLogSink:
    def __init__(self, client: Any = None):
        self.client = client

    def record(self, result: AggregatedValidationResult, user_id: Optional[str] = None) -> bool:
        if self.client is None:
            logger.debug("VALIDATION_LOG skipped (no database) product=%s", result.product_name[:60])
            return False
        row = build_log_row(result, user_id)
        try:
            self.client.table(VALIDATION_LOGS_TABLE).insert(row).execute()
        except Exception as e:
            logger.error("VALIDATION_LOG write failed product=%s: %s", result.product_name[:60], e)
            return False
        logger.info(
            "VALIDATION_LOG product=%s risk=%s confidence=%.2f",
            result.product_name[:60], row["risk_level"], result.confidence,
        )
        return True
