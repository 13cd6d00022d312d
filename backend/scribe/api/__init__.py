# Router aggregator – import each route module here and expose ``api_router``
# for convenient inclusion in the FastAPI app.

from fastapi import APIRouter

from . import routes_auth, routes_debug, routes_transcripts


api_router = APIRouter()
api_router.include_router(routes_auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(routes_transcripts.router, prefix="/transcripts", tags=["transcripts"])
api_router.include_router(routes_debug.router, prefix="/debug", tags=["debug"])
