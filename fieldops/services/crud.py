"""
Shared CRUD primitives used by every entity service.

- ``transaction``: commit once on success, roll back and re-raise on failure.
- ``get_for_update``: existence check that locks the row for the rest of the transaction.
- ``apply_patch``: tri-state partial update (absent = unchanged, None = clear).
- ``indexed_list``: first-match index query followed by in-memory filtering.
"""
import uuid
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..errors import InvalidFieldError, NotFoundError
from .audit import compute_diff


@contextmanager
def transaction(db: Session):
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_for_update(db: Session, model, entity_id: uuid.UUID, entity: str):
    obj = db.query(model).filter(model.id == entity_id).with_for_update().first()
    if not obj:
        raise NotFoundError(entity, entity_id)
    return obj


def get_by_id(db: Session, model, entity_id: uuid.UUID):
    return db.query(model).filter(model.id == entity_id).first()


def apply_patch(obj, data: Dict[str, Any], protected: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Apply the supplied fields to ``obj`` and return the before/after diff.

    ``data`` must only contain the fields the caller actually sent
    (``model_dump(exclude_unset=True)``). An explicit None clears an optional
    column and is rejected for a required one.
    """
    columns = obj.__table__.columns
    before: Dict[str, Any] = {}
    after: Dict[str, Any] = {}
    for key, value in data.items():
        if key in protected or key not in columns:
            continue
        if value is None and not columns[key].nullable:
            raise InvalidFieldError(key, "cannot be null")
        before[key] = getattr(obj, key)
        setattr(obj, key, value)
        after[key] = value
    return compute_diff(before, after)


def indexed_list(
    db: Session,
    model,
    filters: Dict[str, Any],
    index_order: Sequence[str],
    predicates: Optional[Dict[str, Callable[[Any, Any], bool]]] = None,
    order_by=None,
) -> List[Any]:
    """
    Query by the first supplied filter in ``index_order`` (full scan when none is
    supplied), then apply the remaining supplied filters in memory.

    ``predicates`` overrides the equality test for filters that are not plain
    columns, e.g. list membership.
    """
    predicates = predicates or {}
    supplied = {k: v for k, v in filters.items() if v is not None}

    query = db.query(model)
    indexed = next((k for k in index_order if k in supplied), None)
    if indexed is not None:
        query = query.filter(getattr(model, indexed) == supplied.pop(indexed))
    if order_by is not None:
        query = query.order_by(order_by)
    rows = query.all()

    for key, value in supplied.items():
        match = predicates.get(key)
        if match is None:
            rows = [r for r in rows if getattr(r, key) == value]
        else:
            rows = [r for r in rows if match(r, value)]
    return rows


def row_to_dict(obj) -> Dict[str, Any]:
    return {c.key: getattr(obj, c.key) for c in obj.__table__.columns}
