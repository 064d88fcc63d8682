"""
Channel Routes
==============

    GET  /channels              paginated, filtered listing (popularity order)
    GET  /channels/search       text search (relevance order)
    GET  /channels/{id}         channel detail with similar channels
    POST /channels/{id}/join    public join link

Query parameters are declared as optional strings and handed to the
service untouched: page/limit/filter parsing, and the 400 it raises on
malformed input, live in the query layer rather than in FastAPI's own
validation (which would answer 422).

Every response carries Cache-Control and X-Cache headers built from the
resource's cache policy. "/channels/search" is registered before
"/channels/{channel_id}" so it is not captured as an id.
"""

from typing import Any

from fastapi import APIRouter, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from channel_cache.application.api.dependencies import ServiceDep
from channel_cache.application.services import CachedResponse
from channel_cache.core.exceptions import ChannelNotFoundError

router = APIRouter(prefix="/channels", tags=["Channels"])


def _collect(**params: Any) -> dict[str, Any]:
    return {name: value for name, value in params.items() if value is not None}


def _render(response: CachedResponse, channel_id: str | None = None) -> JSONResponse:
    if not response.found:
        raise ChannelNotFoundError("Channel not found", details={"channel_id": channel_id})
    return JSONResponse(content=jsonable_encoder(response.payload), headers=response.headers())


@router.get("")
async def list_channels(
    service: ServiceDep,
    page: str | None = Query(None, description="1-based page number"),
    limit: str | None = Query(None, description="Page size"),
    category: str | None = Query(None),
    language: str | None = Query(None),
    minSubscribers: str | None = Query(None),
    maxSubscribers: str | None = Query(None),
    activity: str | None = Query(None, description="low | medium | high"),
):
    """Popular channels, optionally filtered."""
    response = await service.list_channels(
        _collect(
            page=page,
            limit=limit,
            category=category,
            language=language,
            minSubscribers=minSubscribers,
            maxSubscribers=maxSubscribers,
            activity=activity,
        )
    )
    return _render(response)


@router.get("/search")
async def search_channels(
    service: ServiceDep,
    q: str | None = Query(None, description="Search text"),
    page: str | None = Query(None),
    limit: str | None = Query(None),
    category: str | None = Query(None),
    language: str | None = Query(None),
    minSubscribers: str | None = Query(None),
    maxSubscribers: str | None = Query(None),
    activity: str | None = Query(None),
):
    """Channels matching ``q``, most relevant first."""
    response = await service.search_channels(
        _collect(
            q=q,
            page=page,
            limit=limit,
            category=category,
            language=language,
            minSubscribers=minSubscribers,
            maxSubscribers=maxSubscribers,
            activity=activity,
        )
    )
    return _render(response)


@router.get("/{channel_id}")
async def get_channel(channel_id: str, service: ServiceDep):
    response = await service.get_channel(channel_id)
    return _render(response, channel_id)


@router.post("/{channel_id}/join")
async def join_channel(channel_id: str, service: ServiceDep):
    response = await service.get_join_link(channel_id)
    return _render(response, channel_id)
