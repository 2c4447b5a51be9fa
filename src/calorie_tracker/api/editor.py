"""Editor API endpoints with simple token auth."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from calorie_tracker.api.models import (
    AmountUpdate,
    AnalyzeRequest,
    AudioRequest,
    SearchRequest,
)
from calorie_tracker.domain.errors import (
    IngredientIndexError,
    NotFoodError,
    PersistenceFailure,
)

if TYPE_CHECKING:
    from calorie_tracker.containers import AppContainer
    from calorie_tracker.services.editor import FoodDetailsEditor, Notice

logger = logging.getLogger(__name__)


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


router = APIRouter(
    prefix="/editor", tags=["editor"], dependencies=[Depends(require_api_token)]
)


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def analyze_meal(body: AnalyzeRequest, request: Request) -> dict[str, object]:
    """Recognize a meal from photos and open an editing session for it."""
    container: AppContainer = request.app.state.container
    try:
        meal = await container.analysis_service.analyze_images(
            list(body.images),
            include_vitamins=body.include_vitamins,
            custom_prompt=body.prompt,
        )
    except NotFoodError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except Exception as exc:
        logger.exception("Meal analysis failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Sorry, I couldn't analyze that photo. Please try a clearer shot.",
        ) from exc
    editor = container.new_editor(meal, is_new_meal=True)
    session_id = container.editor_sessions.open(editor)
    return _session_response(session_id, editor)


@router.post("/sessions/from-audio", status_code=status.HTTP_201_CREATED)
async def describe_meal(body: AudioRequest, request: Request) -> dict[str, object]:
    """Build a meal from a voice recording and open an editing session for it."""
    container: AppContainer = request.app.state.container
    if not body.audio:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="No audio provided.",
        )
    try:
        meal = await container.analysis_service.analyze_audio(
            body.audio, audio_format=body.format
        )
    except NotFoodError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except Exception as exc:
        logger.exception("Audio analysis failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Sorry, I couldn't understand that recording. Please try again.",
        ) from exc
    editor = container.new_editor(meal, is_new_meal=True)
    session_id = container.editor_sessions.open(editor)
    return _session_response(session_id, editor)


@router.post("/sessions/from-meal/{meal_id}", status_code=status.HTTP_201_CREATED)
async def edit_saved_meal(meal_id: str, request: Request) -> dict[str, object]:
    """Open an editing session for a stored meal."""
    container: AppContainer = request.app.state.container
    try:
        meal = await container.meal_service.get_meal(meal_id)
    except PersistenceFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    if meal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Meal not found"
        )
    editor = container.new_editor(meal, is_new_meal=False)
    session_id = container.editor_sessions.open(editor)
    return _session_response(session_id, editor)


@router.get("/sessions/{session_id}")
async def get_session(session_id: UUID, request: Request) -> dict[str, object]:
    editor = _get_editor(session_id, request)
    return _session_response(session_id, editor)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_session(session_id: UUID, request: Request) -> Response:
    """Close a session without saving."""
    container: AppContainer = request.app.state.container
    if not container.editor_sessions.close(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/sessions/{session_id}/ingredients/{index}")
async def update_ingredient(
    session_id: UUID, index: int, body: AmountUpdate, request: Request
) -> dict[str, object]:
    editor = _get_editor(session_id, request)
    try:
        editor.update_ingredient_amount(index, body.amount)
    except IngredientIndexError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    return _session_response(session_id, editor)


@router.delete("/sessions/{session_id}/ingredients/{index}")
async def remove_ingredient(
    session_id: UUID, index: int, request: Request
) -> dict[str, object]:
    editor = _get_editor(session_id, request)
    try:
        editor.remove_ingredient(index)
    except IngredientIndexError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    return _session_response(session_id, editor)


@router.post("/sessions/{session_id}/search")
async def search_ingredient(
    session_id: UUID, body: SearchRequest, request: Request
) -> dict[str, object]:
    """Look up an ingredient and attach the result as a preview."""
    editor = _get_editor(session_id, request)
    notice = await editor.search(body.query)
    return _session_response(session_id, editor, notice)


@router.delete("/sessions/{session_id}/search")
async def clear_search(session_id: UUID, request: Request) -> dict[str, object]:
    editor = _get_editor(session_id, request)
    editor.clear_search()
    return _session_response(session_id, editor)


@router.post("/sessions/{session_id}/search/confirm")
async def confirm_search(session_id: UUID, request: Request) -> dict[str, object]:
    """Add every ingredient of the previewed search result."""
    editor = _get_editor(session_id, request)
    notice = editor.add_searched_ingredients()
    return _session_response(session_id, editor, notice)


@router.post("/sessions/{session_id}/save")
async def save_session(session_id: UUID, request: Request) -> dict[str, object]:
    editor = _get_editor(session_id, request)
    notice = await editor.save()
    return _session_response(session_id, editor, notice)


@router.post("/sessions/{session_id}/quick-add")
async def add_to_quick_add(session_id: UUID, request: Request) -> dict[str, object]:
    editor = _get_editor(session_id, request)
    notice = await editor.add_to_quick_add()
    return _session_response(session_id, editor, notice)


@router.get("/quick-add")
async def list_quick_add(request: Request) -> dict[str, object]:
    """Return quick add shortcuts, most used first."""
    container: AppContainer = request.app.state.container
    try:
        items = await container.meal_service.list_quick_add_items()
    except PersistenceFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return {"items": [asdict(item) for item in items]}


@router.post("/quick-add/{item_id}/log", status_code=status.HTTP_201_CREATED)
async def log_quick_add(item_id: str, request: Request) -> dict[str, object]:
    """Log a new meal from a quick add shortcut."""
    container: AppContainer = request.app.state.container
    try:
        item = await container.meal_service.get_quick_add_item(item_id)
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Quick add item not found"
            )
        meal = await container.meal_service.add_meal_from_quick_add(item)
    except PersistenceFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return {"meal_id": meal.id, "name": meal.name, "calories": meal.total_calories}


@router.get("/meals/export.csv")
async def export_meals(request: Request) -> Response:
    container: AppContainer = request.app.state.container
    try:
        content = await container.meal_service.export_meals_csv()
    except PersistenceFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return Response(content=content, media_type="text/csv")


def _get_editor(session_id: UUID, request: Request) -> FoodDetailsEditor:
    container: AppContainer = request.app.state.container
    editor = container.editor_sessions.get(session_id)
    if editor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return editor


def _session_response(
    session_id: UUID, editor: FoodDetailsEditor, notice: Notice | None = None
) -> dict[str, object]:
    return {
        "session_id": str(session_id),
        "session": editor.view(),
        "notice": asdict(notice) if notice else None,
    }
