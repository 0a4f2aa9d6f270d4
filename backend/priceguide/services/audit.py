"""Audit event sink for category tree changes"""

from typing import Any, Dict, Optional
import logging

from ..auth import Principal

audit_logger = logging.getLogger("priceguide.audit")
logger = logging.getLogger(__name__)


class AuditSink:
    """
    Fire-and-forget structured events (``category.created``, ``category.moved``, ...).

    Events are emitted after the domain transaction commits; a failing sink
    is logged and otherwise ignored.
    """

    def __init__(self, sink: Optional[logging.Logger] = None):
        self.sink = sink or audit_logger

    def emit(
        self,
        event: str,
        principal: Principal,
        entity_id: Any,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        **extra: Any,
    ) -> None:
        record = {
            "event": event,
            "actor_id": principal.user_id,
            "company_id": principal.company_id,
            "entity_id": str(entity_id),
            "before": before,
            "after": after,
        }
        record.update(extra)
        try:
            self.sink.info(event, extra={"audit": record})
        except Exception as e:
            logger.warning(f"Failed to emit audit event {event} for {entity_id}: {e}")


def diff(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Changed fields as ``{field: {"from": old, "to": new}}``."""
    changes = {}
    for key, new_value in after.items():
        old_value = before.get(key)
        if old_value != new_value:
            changes[key] = {"from": _plain(old_value), "to": _plain(new_value)}
    return changes


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return getattr(value, "value", None) or str(value)
