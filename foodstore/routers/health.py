from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from foodstore.db import Database
from foodstore.dependencies import get_database

router = APIRouter(tags=["health"])


def registered_routes(app) -> list[str]:
    return [
        f"{', '.join(sorted(route.methods))} {route.path}"
        for route in app.routes
        if isinstance(route, APIRoute)
    ]


@router.get("/health")
async def health(database: Database = Depends(get_database)):
    if database.ready:
        return JSONResponse(status_code=status.HTTP_200_OK, content={"healthy": True})
    if database.state.ready:
        error = "Unique indexes are not built yet."
    else:
        error = str(database.state.error or "Database not connected.")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"healthy": False, "error": error},
    )


@router.get("/ping")
async def ping_db(database: Database = Depends(get_database)):
    return {"mongo_ok": await database.ping()}


@router.get("/routes")
async def routes(request: Request):
    return {"routes": registered_routes(request.app)}
