"""History REST endpoints: class-based router over the history service."""

import logging
from datetime import UTC, date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from playlog.aggregation import AggregateSnapshot
from playlog.exceptions import MalformedImportError
from playlog.history import HistoryService, HistoryStatistics, ListeningTime
from playlog_api.constants import CSV_MEDIA_TYPE, EXPORT_FILENAME_TEMPLATE
from playlog_api.dependencies import get_history
from playlog_api.history.schemas import ActionResponse, AddedResponse, EventOut, MergeRequest
from playlog_api.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


class HistoryRouter:
    """Class-based router for the history query surface."""

    def __init__(self) -> None:
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.add_api_route("/events", self.list_events, methods=["GET"], response_model=list[EventOut])
        r.add_api_route("/events", self.merge_events, methods=["POST"], response_model=AddedResponse)
        r.add_api_route("/events", self.clear_events, methods=["DELETE"], response_model=ActionResponse)
        # Registered before /events/{day} so "today" is not parsed as a date.
        r.add_api_route("/events/today", self.todays_events, methods=["GET"], response_model=list[EventOut])
        r.add_api_route("/events/{day}", self.events_on_date, methods=["GET"], response_model=list[EventOut])
        r.add_api_route("/snapshot", self.snapshot, methods=["GET"], response_model=AggregateSnapshot)
        r.add_api_route("/listening-time", self.listening_time, methods=["GET"], response_model=ListeningTime)
        r.add_api_route("/statistics", self.statistics, methods=["GET"], response_model=HistoryStatistics)
        r.add_api_route("/export", self.export_csv, methods=["GET"], response_class=StreamingResponse)
        r.add_api_route("/import", self.import_csv, methods=["POST"], response_model=AddedResponse)

    async def list_events(
        self,
        history: Annotated[HistoryService, Depends(get_history)],
        start: date | None = Query(default=None),
        end: date | None = Query(default=None),
    ) -> list[EventOut]:
        """All events newest first, optionally limited to an inclusive date range."""
        if start is None and end is None:
            events = await history.get_all_events()
        else:
            events = await history.get_events_in_date_range(start or date.min, end or date.max)
        return [EventOut.from_event(e) for e in events]

    async def todays_events(self, history: Annotated[HistoryService, Depends(get_history)]) -> list[EventOut]:
        events = await history.get_todays_events()
        return [EventOut.from_event(e) for e in events]

    async def events_on_date(
        self,
        day: date,
        history: Annotated[HistoryService, Depends(get_history)],
    ) -> list[EventOut]:
        events = await history.get_events_on_date(day)
        return [EventOut.from_event(e) for e in events]

    async def merge_events(
        self,
        body: MergeRequest,
        history: Annotated[HistoryService, Depends(get_history)],
    ) -> AddedResponse:
        """Merge raw upstream items; already-stored plays are ignored."""
        try:
            added = await history.merge_raw(body.items)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return AddedResponse(added=added)

    async def clear_events(self, history: Annotated[HistoryService, Depends(get_history)]) -> ActionResponse:
        await history.clear_all()
        return ActionResponse(success=True, message="History cleared")

    async def snapshot(
        self,
        history: Annotated[HistoryService, Depends(get_history)],
        refresh: bool = Query(default=False),
    ) -> AggregateSnapshot:
        """Current aggregate snapshot; ``refresh`` forces a recompute."""
        return await history.get_aggregate_snapshot(refresh=refresh)

    async def listening_time(self, history: Annotated[HistoryService, Depends(get_history)]) -> ListeningTime:
        """Listening time over the entire log."""
        return await history.get_listening_time()

    async def statistics(self, history: Annotated[HistoryService, Depends(get_history)]) -> HistoryStatistics:
        return await history.get_statistics()

    async def export_csv(self, history: Annotated[HistoryService, Depends(get_history)]) -> StreamingResponse:
        """Download the whole log as a CSV backup."""
        content = await history.export_raw()
        filename = EXPORT_FILENAME_TEMPLATE.format(date=datetime.now(UTC).date().isoformat())
        return StreamingResponse(
            iter([content]),
            media_type=CSV_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    async def import_csv(
        self,
        request: Request,
        history: Annotated[HistoryService, Depends(get_history)],
        settings: Annotated[AppSettings, Depends(get_settings)],
    ) -> AddedResponse:
        """Merge a CSV backup sent as the request body."""
        max_bytes = settings.IMPORT_MAX_SIZE_MB * 1024 * 1024
        payload = bytearray()
        async for chunk in request.stream():
            payload.extend(chunk)
            if len(payload) > max_bytes:
                logger.warning("Rejected import larger than %dMB", settings.IMPORT_MAX_SIZE_MB)
                raise HTTPException(
                    status_code=413,
                    detail=f"Payload exceeds maximum size of {settings.IMPORT_MAX_SIZE_MB}MB",
                )
        try:
            added = await history.import_raw(bytes(payload))
        except MalformedImportError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return AddedResponse(added=added)


_instance = HistoryRouter()
router = _instance.router
