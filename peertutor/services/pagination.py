"""Opaque continuation tokens for newest-first listings."""

import base64
import binascii
import json
from datetime import datetime

from sqlalchemy import Select, and_, or_

from peertutor.errors import ValidationError


def encode_token(created_at: datetime, row_id: str) -> str:
    raw = json.dumps({"c": created_at.isoformat(), "i": row_id}).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_token(token: str) -> tuple[datetime, str]:
    try:
        padded = token + "=" * (-len(token) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded))
        return datetime.fromisoformat(data["c"]), str(data["i"])
    except (binascii.Error, ValueError, KeyError, TypeError) as e:
        raise ValidationError("Invalid page token") from e


def newest_first_page(stmt: Select, model, limit: int, page_token: str | None) -> Select:
    """Order ``stmt`` newest first and resume after ``page_token``.

    Fetches one extra row so the caller can tell whether another page exists.
    """
    if limit < 1:
        raise ValidationError("Limit must be at least 1")
    if page_token:
        created_at, row_id = decode_token(page_token)
        stmt = stmt.where(or_(
            model.created_at < created_at,
            and_(model.created_at == created_at, model.id < row_id),
        ))
    return stmt.order_by(model.created_at.desc(), model.id.desc()).limit(limit + 1)


def split_page(rows: list, limit: int) -> tuple[list, str | None]:
    """Trim the look-ahead row and build the next token, if any."""
    if len(rows) <= limit:
        return rows, None
    page = rows[:limit]
    last = page[-1]
    return page, encode_token(last.created_at, last.id)
