from fastapi import APIRouter

from . import digest, telegram

api_router = APIRouter()
api_router.include_router(telegram.router, prefix="/telegram", tags=["telegram"])
api_router.include_router(digest.router, prefix="/digest", tags=["digest"])
