"""
campus_wallet.logs.feed

Audit-log feed for the signed-in admin.

Responsibilities:
- Fetch the shared feed from the backend and parse records (malformed ones are skipped).
- Reduce it to the records the viewer's department may see.
- Apply the user's search, filters, sort order and pagination.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Any

from pydantic import ValidationError

from campus_wallet.backend.client import WalletApiClient
from campus_wallet.identity.models import RoleTag, Session
from campus_wallet.logs.models import EventRecord
from campus_wallet.logs.policy import filter_visible
from campus_wallet.observability.logging import get_logger

log = get_logger(__name__)

PAGE_SIZE = 20

_EPOCH = datetime.min.replace(tzinfo=UTC)


class SortKey(enum.StrEnum):
    timestamp = "timestamp"
    type = "type"
    user = "user"


@dataclass(frozen=True, slots=True)
class LogQuery:
    search: str = ""
    event_type: str | None = None
    status: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    sort: SortKey = SortKey.timestamp
    page: int = 1


@dataclass(frozen=True, slots=True)
class LogPage:
    records: tuple[EventRecord, ...]
    page: int
    total_pages: int
    total: int


def parse_records(raw: Iterable[Mapping[str, Any]]) -> list[EventRecord]:
    records: list[EventRecord] = []
    skipped = 0
    for item in raw:
        try:
            records.append(EventRecord.model_validate(item))
        except ValidationError:
            skipped += 1
    if skipped:
        log.warning("logs.records_skipped", count=skipped)
    return records


def apply_query(records: Iterable[EventRecord], query: LogQuery) -> LogPage:
    matching = [record for record in records if _matches(record, query)]
    ordered = _sorted(matching, query.sort)

    total = len(ordered)
    total_pages = math.ceil(total / PAGE_SIZE)
    page = max(query.page, 1)
    start = (page - 1) * PAGE_SIZE
    return LogPage(
        records=tuple(ordered[start : start + PAGE_SIZE]),
        page=page,
        total_pages=total_pages,
        total=total,
    )


def _matches(record: EventRecord, query: LogQuery) -> bool:
    if query.search and not _search_hit(record, query.search.casefold()):
        return False
    if query.event_type and record.category != query.event_type:
        return False
    if query.status and record.status != query.status:
        return False

    if query.start_date or query.end_date:
        if record.timestamp is None:
            return False
        if query.start_date and record.timestamp < datetime.combine(query.start_date, time.min, tzinfo=UTC):
            return False
        # The end date is inclusive of the whole day.
        if query.end_date and record.timestamp > datetime.combine(query.end_date, time.max, tzinfo=UTC):
            return False
    return True


def _search_hit(record: EventRecord, needle: str) -> bool:
    haystack = (
        record.event_type,
        record.legacy_type,
        record.title,
        record.description,
        record.message,
        record.admin_name,
        record.admin_id,
        record.timestamp.isoformat() if record.timestamp else None,
    )
    return any(needle in value.casefold() for value in haystack if value)


def _sorted(records: list[EventRecord], sort: SortKey) -> list[EventRecord]:
    if sort is SortKey.type:
        return sorted(records, key=lambda r: r.category.casefold())
    if sort is SortKey.user:
        return sorted(records, key=lambda r: r.actor_name.casefold())
    # Newest first; records without a timestamp go last.
    return sorted(records, key=lambda r: r.timestamp or _EPOCH, reverse=True)


class LogFeed:
    """
    The feed endpoint returns every department's records; visibility is applied here,
    before any user-selected filter.
    """

    def __init__(self, *, client: WalletApiClient) -> None:
        self._client = client

    async def visible_records(self, session: Session) -> list[EventRecord]:
        viewer = _viewer(session)
        records = parse_records(await self._client.event_logs(session=session))
        visible = filter_visible(viewer, records)
        log.info("logs.fetched", viewer=viewer, fetched=len(records), visible=len(visible))
        return visible

    async def query(self, session: Session, query: LogQuery) -> LogPage:
        return apply_query(await self.visible_records(session), query)


def _viewer(session: Session) -> RoleTag:
    role_tag = session.principal.role_tag
    if role_tag is None:
        raise ValueError("event logs are only available to admin sessions")
    return role_tag


# --- Module Notes -----------------------------------------------------------
# Pages are 1-based; a page past the end is empty rather than an error.
