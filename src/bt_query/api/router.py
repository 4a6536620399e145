"""bt_query REST API — balance history and leaderboard commands."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bt_common.response import ApiResponse, success_response
from src.bt_query.api.dependencies import get_query_service
from src.bt_query.application.service import BalanceQueryService

router = APIRouter(prefix="/balances", tags=["balances"])


@router.get("/history/{name}")
async def get_history(
    name: str,
    service: Annotated[BalanceQueryService, Depends(get_query_service)],
    request: Request,
) -> ApiResponse:
    data = await service.get_history(name)
    return success_response(
        data.model_dump(mode="json"), getattr(request.state, "request_id", None)
    )


@router.get("/leaderboard")
async def get_leaderboard(
    service: Annotated[BalanceQueryService, Depends(get_query_service)],
    request: Request,
    n: str | None = Query(None, description="Number of entries, 1-100 (default 10)"),
) -> ApiResponse:
    # n is taken as a raw string so malformed input gets the service's validation message
    data = await service.get_leaderboard(n)
    return success_response(
        data.model_dump(mode="json"), getattr(request.state, "request_id", None)
    )
