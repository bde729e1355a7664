"""Audit logging helper utilities."""
from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy.orm import Session

from ekko.models.audit import AuditLog
from ekko.utils.time import utcnow


SENSITIVE_KEYS = {"email", "attachments", "key_hash"}


def _mask_url(value: Any) -> str:
    base = str(value).split("?", 1)[0]
    if "/" in base:
        prefix = base.rsplit("/", 1)[0]
        return f"{prefix}/***"
    return "***/***"


def _mask_value(key: str, value: Any) -> Any:
    if value is None:
        return None

    if key == "email":
        text = str(value)
        if "@" in text:
            _, domain = text.split("@", 1)
            return f"***@{domain}"
        return "***"

    if key == "attachments":
        if isinstance(value, list):
            return [_mask_url(item) for item in value]
        return _mask_url(value)

    if key == "key_hash":
        return "***"

    return value


def sanitize_payload_for_audit(data: Any) -> Any:
    """Return a copy of ``data`` with obvious PII fields masked."""

    if isinstance(data, Mapping):
        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            if key in SENSITIVE_KEYS:
                sanitized[key] = _mask_value(key, value)
            else:
                sanitized[key] = sanitize_payload_for_audit(value)
        return sanitized

    if isinstance(data, list):
        return [sanitize_payload_for_audit(item) for item in data]

    return data


def log_audit(
    db: Session,
    *,
    actor: str,
    action: str,
    entity: str,
    entity_id: int | None,
    data: dict | None = None,
) -> None:
    """Persist an audit entry in the shared AuditLog table."""

    db.add(
        AuditLog(
            actor=actor,
            action=action,
            entity=entity,
            entity_id=entity_id if entity_id is not None else 0,
            data_json=sanitize_payload_for_audit(data or {}),
            at=utcnow(),
        )
    )


def actor_from_user(user: Any, fallback: str = "system") -> str:
    """Return the canonical actor string for an authenticated user."""

    user_id = getattr(user, "id", None)
    if user_id is not None:
        return f"user:{user_id}"
    return fallback


def actor_from_api_key(api_key: Any, fallback: str = "system") -> str:
    """Return the canonical actor string for a given API key object."""

    prefix = getattr(api_key, "prefix", None)
    if prefix:
        return f"apikey:{prefix}"
    return fallback
