"""FastAPI dependencies for bt_query — services live on app.state (built in lifespan)."""

from fastapi import Request

from src.bt_common.errors import InternalError
from src.bt_query.application.service import BalanceQueryService


def get_query_service(request: Request) -> BalanceQueryService:
    service = getattr(request.app.state, "query_service", None)
    if service is None:
        raise InternalError("Query service is not initialised")
    return service
