import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from dataroom.errors import ValidationFailed


def coerce_uuid(value):
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationFailed(f"Invalid identifier: {value}")


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; every stored value is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def apply_ordering(query, order_by, order_dir, allowed_columns):
    if order_by not in allowed_columns:
        raise ValidationFailed(
            f"Invalid order_by. Allowed: {', '.join(sorted(allowed_columns))}"
        )
    column = allowed_columns[order_by]
    if order_dir == "desc":
        return query.order_by(column.desc())
    return query.order_by(column.asc())


def apply_pagination(query, limit, offset):
    return query.limit(limit).offset(offset)


def insert_ignore(db: Session, model, values: dict, conflict_columns: list[str]) -> bool:
    """Atomic INSERT ... ON CONFLICT DO NOTHING on the given unique key.

    Returns True when this call created the row.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model)
    else:
        raise RuntimeError(f"insert_ignore is not supported on {dialect}")
    stmt = stmt.values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
    result = db.execute(stmt)
    return result.rowcount == 1


def conditional_update(db: Session, model, criteria: list, values: dict) -> int:
    """Single UPDATE ... WHERE; returns the number of rows written."""
    stmt = (
        update(model)
        .where(*criteria)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount
