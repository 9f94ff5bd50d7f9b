"""
Search and advanced filtering for list endpoints.

Two flavours:
- matches_query / filter_rows: plain case-insensitive substring search over
  in-memory rows (dicts or objects).
- apply_case_filters: the advanced legal case filter builder. Each filter is
  {field, operator, value, type}; anything it does not understand is skipped.
"""

import json
import logging
from datetime import date, timedelta
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import DateTime, Integer, Select, and_, or_, select

from casedesk.core.utc import day_start_utc
from casedesk.models.models import (
    CaseIndividual,
    CaseLegalEntity,
    Individual,
    LegalCase,
    LegalEntity,
)


logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

# Case columns a filter may target
CASE_FILTER_FIELDS = {
    "code": LegalCase.code,
    "entry_date": LegalCase.entry_date,
    "sentence_date": LegalCase.sentence_date,
    "closing_date": LegalCase.closing_date,
    "case_type_id": LegalCase.case_type_id,
    "created_at": LegalCase.created_at,
    "updated_at": LegalCase.updated_at,
}

ENTITY_FILTER_FIELDS = {
    "legal_entity_rif": LegalEntity.rif,
    "legal_entity_business_name": LegalEntity.business_name,
}


# =============================================================================
# Simple search
# =============================================================================

def _field_value(row: Any, field: str) -> Any:
    if isinstance(row, dict):
        return row.get(field)
    return getattr(row, field, None)


def matches_query(row: Any, query: Optional[str], fields: Sequence[str] = ("name", "description")) -> bool:
    """True when any of ``fields`` contains ``query`` (case-insensitive)."""
    if not query:
        return True
    needle = query.casefold()
    for field in fields:
        value = _field_value(row, field)
        if value is not None and needle in str(value).casefold():
            return True
    return False


def filter_rows(rows: Iterable[Any], query: Optional[str], fields: Sequence[str] = ("name", "description")) -> list:
    """Rows matching ``query``, original order preserved."""
    return [row for row in rows if matches_query(row, query, fields)]


def like_any(query: str, *columns):
    """OR of case-insensitive substring matches over columns; ``%`` and ``_`` match literally."""
    return or_(*(column.icontains(query, autoescape=True) for column in columns))


# =============================================================================
# Advanced legal case filters
# =============================================================================

def parse_filters(raw: Any) -> list[dict]:
    """
    Normalize the ``filter`` parameter.

    Accepts a JSON string, a list of filter dicts or a dict keyed by index.
    Returns [] for anything else.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.debug("Ignoring malformed filter parameter: %s", raw)
            return []
    if isinstance(raw, dict):
        raw = list(raw.values())
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _coerce(column, value: Any) -> Any:
    if isinstance(column.type, Integer):
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
    return value


def string_condition(column, operator: str, value: Any):
    if value in (None, ""):
        return None
    value = str(value)
    if operator == "equals":
        return column == value
    if operator == "contains":
        return column.icontains(value, autoescape=True)
    if operator == "starts_with":
        return column.istartswith(value, autoescape=True)
    if operator == "ends_with":
        return column.iendswith(value, autoescape=True)
    if operator == "not_contains":
        return ~column.icontains(value, autoescape=True)
    return None


def _day_start(column, day: date, tz_name: str):
    """Start of ``day`` in the column's terms: the date itself, or local midnight in UTC for timestamps."""
    if isinstance(column.type, DateTime):
        return day_start_utc(day, tz_name)
    return day


def date_condition(column, operator: str, value: Any, tz_name: str = "UTC"):
    """
    Compare by calendar day. Timestamp columns (created_at, updated_at) match
    on the local date of the timestamp, so "equals today" covers the whole day.
    """
    if operator == "is_null":
        return column.is_(None)
    if operator == "is_not_null":
        return column.is_not(None)

    if operator == "between":
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return None
        if not isinstance(value, dict):
            return None
        start, end = _parse_date(value.get("start")), _parse_date(value.get("end"))
        if start is None or end is None:
            return None
        return and_(
            column >= _day_start(column, start, tz_name),
            column < _day_start(column, end + ONE_DAY, tz_name),
        )

    day = _parse_date(value)
    if day is None:
        return None
    if operator == "equals":
        return and_(
            column >= _day_start(column, day, tz_name),
            column < _day_start(column, day + ONE_DAY, tz_name),
        )
    if operator == "before":
        return column < _day_start(column, day, tz_name)
    if operator == "after":
        return column >= _day_start(column, day + ONE_DAY, tz_name)
    return None


def select_condition(column, operator: str, value: Any):
    if value in (None, ""):
        return None
    value = _coerce(column, value)
    if value is None:
        return None
    if operator == "equals":
        return column == value
    if operator == "not_equals":
        return column != value
    return None


def individual_condition(field: str, operator: str, value: Any):
    """Cases with an individual whose national id or passport matches."""
    if field != "individual_id_document" or value in (None, ""):
        return None
    value = str(value)
    if operator == "equals":
        match = or_(Individual.national_id == value, Individual.passport == value)
    elif operator == "contains":
        match = like_any(value, Individual.national_id, Individual.passport)
    else:
        return None
    subquery = (
        select(CaseIndividual.legal_case_id)
        .join(Individual, Individual.id == CaseIndividual.individual_id)
        .where(Individual.deleted_at.is_(None), match)
    )
    return LegalCase.id.in_(subquery)


def legal_entity_condition(field: str, operator: str, value: Any):
    """Cases with a legal entity matching by RIF or business/trade name."""
    column = ENTITY_FILTER_FIELDS.get(field)
    if column is None or value in (None, ""):
        return None
    columns = [column]
    if field == "legal_entity_business_name":
        columns.append(LegalEntity.trade_name)

    conditions = [string_condition(col, operator, value) for col in columns]
    if operator not in ("equals", "contains", "starts_with") or conditions[0] is None:
        return None

    subquery = (
        select(CaseLegalEntity.legal_case_id)
        .join(LegalEntity, LegalEntity.id == CaseLegalEntity.legal_entity_id)
        .where(LegalEntity.deleted_at.is_(None), or_(*conditions))
    )
    return LegalCase.id.in_(subquery)


def build_case_condition(criterion: dict, tz_name: str = "UTC"):
    """SQL condition for one filter, or None when the filter is not applicable."""
    field = criterion.get("field")
    operator = criterion.get("operator")
    if not field or not operator:
        return None
    value = criterion.get("value")
    kind = criterion.get("type") or "string"

    if kind == "individual":
        return individual_condition(field, operator, value)
    if kind == "legal_entity":
        return legal_entity_condition(field, operator, value)

    column = CASE_FILTER_FIELDS.get(field)
    if column is None:
        logger.debug("Ignoring filter on unknown field %s", field)
        return None
    if kind == "string":
        return string_condition(column, operator, value)
    if kind == "date":
        return date_condition(column, operator, value, tz_name)
    if kind == "select":
        return select_condition(column, operator, value)
    return None


def apply_case_filters(stmt: Select, filters: Iterable[dict], tz_name: str = "UTC") -> Select:
    """AND every applicable filter onto a LegalCase select."""
    for criterion in filters:
        condition = build_case_condition(criterion, tz_name)
        if condition is not None:
            stmt = stmt.where(condition)
    return stmt
