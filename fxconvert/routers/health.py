from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness plus cache state")
async def health(request: Request):
    svc = request.app.state.rate_cache
    snapshot = svc.peek()
    cache = {"populated": snapshot is not None}
    if snapshot is not None:
        cache.update(
            base=snapshot.base_currency,
            last_updated=snapshot.last_updated.isoformat(),
            currencies=len(snapshot.currencies),
        )
    return {"status": "ok", "cache": cache}
