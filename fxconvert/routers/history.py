from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from fxconvert.models.history import HistoryAppendIn, HistoryRecordOut, HistoryResponse
from fxconvert.services.history import HistoryStore, resolve_user_id

router = APIRouter(prefix="/api/history", tags=["history"])


def get_history_store(request: Request) -> HistoryStore:
    return request.app.state.history_store


@router.post("", summary="Record a conversion in a user's history")
async def append_history(
    payload: HistoryAppendIn,
    store: HistoryStore = Depends(get_history_store),
):
    user_id = resolve_user_id(payload.user_id)
    await store.append(user_id, payload.to_record(user_id))
    return {"success": True}


@router.get("", response_model=HistoryResponse, summary="List a user's recent conversions")
async def get_history(
    user_id: Optional[str] = Query(None, alias="userId", description="Defaults to anonymous"),
    store: HistoryStore = Depends(get_history_store),
):
    records = await store.list(user_id)
    return HistoryResponse(history=[HistoryRecordOut.from_record(r) for r in records])


@router.delete("", summary="Clear a user's history")
async def clear_history(
    user_id: Optional[str] = Query(None, alias="userId", description="Defaults to anonymous"),
    store: HistoryStore = Depends(get_history_store),
):
    await store.clear(user_id)
    return {"success": True}
