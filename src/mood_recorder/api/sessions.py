"""Session review endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from mood_recorder.domain.errors import StorageError
from mood_recorder.services.export import build_csv, format_timestamp

if TYPE_CHECKING:
    from mood_recorder.containers import AppContainer
    from mood_recorder.domain.records import Record
    from mood_recorder.domain.stats import SessionStatistics

router = APIRouter(tags=["sessions"])


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_api_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/sessions", dependencies=[Depends(require_api_token)])
async def list_sessions(request: Request) -> dict[str, object]:
    """Return all sessions, newest first."""
    container: AppContainer = request.app.state.container
    records = await container.session_store.get_all()
    return {"sessions": [_record_payload(record) for record in records]}


@router.get("/sessions/{record_id}", dependencies=[Depends(require_api_token)])
async def session_detail(record_id: str, request: Request) -> dict[str, object]:
    """Return a single session."""
    container: AppContainer = request.app.state.container
    record = await container.session_store.get_by_id(record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return _record_payload(record)


@router.delete("/sessions/{record_id}", dependencies=[Depends(require_api_token)])
async def delete_session(record_id: str, request: Request) -> dict[str, str]:
    """Delete a session by id."""
    container: AppContainer = request.app.state.container
    try:
        await container.session_store.delete_by_id(record_id)
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return {"status": "deleted"}


@router.delete("/sessions", dependencies=[Depends(require_api_token)])
async def clear_sessions(request: Request) -> dict[str, str]:
    """Delete every session."""
    container: AppContainer = request.app.state.container
    try:
        await container.session_store.clear()
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return {"status": "cleared"}


@router.get("/stats", dependencies=[Depends(require_api_token)])
async def statistics(request: Request) -> dict[str, object]:
    """Return aggregate statistics."""
    container: AppContainer = request.app.state.container
    summary = await container.stats_service.get_summary()
    return _stats_payload(summary)


@router.get(
    "/export.csv",
    dependencies=[Depends(require_api_token)],
    response_class=PlainTextResponse,
)
async def export_csv(request: Request) -> PlainTextResponse:
    """Return every session as CSV."""
    container: AppContainer = request.app.state.container
    records = await container.session_store.get_all()
    return PlainTextResponse(
        build_csv(records),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="sessions_export.csv"'},
    )


@router.post("/export", dependencies=[Depends(require_api_token)])
async def export_to_sink(request: Request) -> dict[str, object]:
    """Write the CSV export through the configured sink."""
    container: AppContainer = request.app.state.container
    result = await container.export_service.export()
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="No sessions to export"
        )
    if not result.succeeded:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Export failed"
        )
    return {
        "filename": result.filename,
        "location": result.location,
        "record_count": result.record_count,
    }


def _record_payload(record: Record) -> dict[str, object]:
    return {
        "id": record.id,
        "start_time": format_timestamp(record.start_time),
        "end_time": format_timestamp(record.end_time) if record.end_time else None,
        "duration": record.duration,
        "emotion_value": record.emotion_value,
        "latitude": record.latitude,
        "longitude": record.longitude,
        "media_ref": record.media_ref,
    }


def _stats_payload(summary: SessionStatistics) -> dict[str, object]:
    return {
        "total_sessions": summary.total_sessions,
        "average_emotion": summary.average_emotion,
        "emotion_distribution": {
            str(level): count for level, count in summary.emotion_distribution.items()
        },
        "locations_recorded": summary.locations_recorded,
        "levels": [
            {"level": row.level, "count": row.count, "percentage": row.percentage}
            for row in summary.level_counts()
        ],
    }
