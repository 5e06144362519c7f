from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from ..config import require_api_key
from ..logging import log

router = APIRouter()


@router.get("/health")
def health():
    return Response(status_code=200)


@router.get("/metrics", dependencies=[Depends(require_api_key)])
def metrics(request: Request):
    registry = request.app.state.collector.registry
    try:
        body = generate_latest(registry)
    except Exception as e:
        log.error("metrics_encode_failed", error=str(e))
        return PlainTextResponse("Failed to encode metrics", status_code=500)
    return Response(content=body, media_type=CONTENT_TYPE_LATEST)
