from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Dict, Optional

from sqlmodel import Session
from observability import current_trace_ids
from bot.settings import AUDIT_ENABLE
import db

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = {
    "handle_name",
    "name",
    "text",
}


def _hash_value(v: str) -> str:
    h = hashlib.sha256(v.encode("utf-8", errors="ignore")).hexdigest()
    return h[:12]


def redact_details(details: Dict[str, Any] | None) -> Dict[str, Any]:
    """Return a policy-safe copy of details (no raw PII).

    - Replaces identifying fields with short hashes.
    - Keeps small primitives useful for debugging; nested values become hashes.
    """
    out: Dict[str, Any] = {}
    for k, v in (details or {}).items():
        if k in SENSITIVE_KEYS:
            if v is None:
                continue
            out[k + "_hash"] = _hash_value(str(v))
            continue
        if isinstance(v, str):
            out[k] = v[:500]
        elif isinstance(v, (int, float, bool)) or v is None:
            out[k] = v
        else:
            out[k + "_hash"] = _hash_value(json.dumps(v, ensure_ascii=False, default=str)[:2000])
    return out


def write_audit(
    actor: str,
    action: str,
    entity_type: str = "",
    entity_id: str = "",
    details: Optional[Dict[str, Any]] = None,
) -> bool:
    """Best-effort audit write: a failure is logged, never raised into the turn."""
    if not AUDIT_ENABLE:
        return False
    safe = redact_details(details)

    # Put trace IDs in the record for easier correlation when debugging
    ids = current_trace_ids()
    if ids:
        safe.update(ids)

    try:
        with Session(db.engine) as s:
            s.add(
                db.AuditLog(
                    actor=actor or "system",
                    action=action or "UNKNOWN",
                    entity_type=entity_type or "",
                    entity_id=entity_id or "",
                    details_json=json.dumps(safe, ensure_ascii=False),
                )
            )
            s.commit()
    except Exception:
        logger.warning("[AUDIT] could not record %s for %s/%s", action, entity_type, entity_id, exc_info=True)
        return False
    return True
