"""FastAPI application factory."""

import json
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import StreamingResponse

from trackcal.api.models import (
    AddEntryRequest,
    DayBucketModel,
    EntryModel,
    GoalSettingsModel,
    TodayModel,
    UpdateGoalSettingsRequest,
)
from trackcal.app_logging import configure_logging
from trackcal.containers import AppContainer
from trackcal.domain.entries import Snapshot
from trackcal.domain.results import (
    Err,
    FailureCause,
    PersistenceError,
    ResolutionError,
    ResolutionErrorKind,
)

_RESOLUTION_STATUS = {
    ResolutionErrorKind.BLANK_INPUT: status.HTTP_400_BAD_REQUEST,
    ResolutionErrorKind.FAILED: status.HTTP_502_BAD_GATEWAY,
    ResolutionErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/entries")
    async def list_entries(request: Request) -> list[EntryModel]:
        """Return every entry, newest first."""
        state_container: AppContainer = request.app.state.container
        return [
            EntryModel.from_entry(entry) for entry in _read_entries(state_container)
        ]

    @app.get("/entries/stream")
    async def stream_entries(request: Request) -> StreamingResponse:
        """Stream a full snapshot as one JSON line after every change."""
        state_container: AppContainer = request.app.state.container

        async def lines() -> AsyncIterator[str]:
            async for snapshot in state_container.ledger_service.entries():
                payload = [
                    EntryModel.from_entry(entry).model_dump() for entry in snapshot
                ]
                yield json.dumps(payload) + "\n"

        return StreamingResponse(lines(), media_type="application/x-ndjson")

    @app.post("/entries", status_code=status.HTTP_201_CREATED)
    async def add_entry(body: AddEntryRequest, request: Request) -> EntryModel:
        """Resolve a meal description and log it."""
        state_container: AppContainer = request.app.state.container
        ledger = state_container.ledger_service
        if body.credential:
            result = await ledger.add_from_text(body.description, body.credential)
        else:
            result = await ledger.add_from_text_with_saved_credential(
                body.description
            )
        if isinstance(result, Err):
            raise _failure_to_http(result.error)
        logger.info("Entry created via API: id=%s", result.value.id)
        return EntryModel.from_entry(result.value)

    @app.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_entry(entry_id: int, request: Request) -> Response:
        """Delete an entry; unknown ids succeed."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.ledger_service.remove_by_id(entry_id)
        if isinstance(result, Err):
            raise _failure_to_http(result.error)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/summary/today")
    async def summary_today(request: Request) -> TodayModel:
        """Return today's totals, remaining calories and logs."""
        state_container: AppContainer = request.app.state.container
        ledger = state_container.ledger_service
        _read_entries(state_container)
        now_ms = ledger.clock()
        return TodayModel.from_progress(
            ledger.progress(now_ms), ledger.today(now_ms)
        )

    @app.get("/summary/week")
    async def summary_week(request: Request) -> list[DayBucketModel]:
        """Return seven day buckets, oldest first."""
        state_container: AppContainer = request.app.state.container
        _read_entries(state_container)
        return [
            DayBucketModel.from_bucket(bucket)
            for bucket in state_container.ledger_service.week()
        ]

    @app.get("/settings")
    async def get_settings(request: Request) -> GoalSettingsModel:
        """Return the goals and whether a credential is stored."""
        state_container: AppContainer = request.app.state.container
        return _settings_model(state_container)

    @app.put("/settings")
    async def update_settings(
        body: UpdateGoalSettingsRequest, request: Request
    ) -> GoalSettingsModel:
        """Replace the goals and credential."""
        state_container: AppContainer = request.app.state.container
        state_container.goal_settings_service.save(
            calorie_goal=body.calorie_goal,
            protein_goal=body.protein_goal,
            credential=body.credential,
        )
        return _settings_model(state_container)

    return app


def _settings_model(container: AppContainer) -> GoalSettingsModel:
    service = container.goal_settings_service
    return GoalSettingsModel(
        calorie_goal=service.get_calorie_goal(),
        protein_goal=service.get_protein_goal(),
        has_credential=bool(service.get_credential()),
    )


def _read_entries(container: AppContainer) -> Snapshot:
    snapshot = container.entry_store.read()
    if isinstance(snapshot, Err):
        raise _failure_to_http(snapshot.error)
    return snapshot.value


def _failure_to_http(error: ResolutionError | PersistenceError) -> HTTPException:
    if isinstance(error, PersistenceError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Entry {error.operation} failed",
        )
    status_code = _RESOLUTION_STATUS[error.kind]
    if error.cause is FailureCause.MISSING_CREDENTIAL:
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(
        status_code=status_code,
        detail={
            "error": error.kind.value,
            "cause": error.cause.value,
            "retryable": error.retryable,
        },
    )
