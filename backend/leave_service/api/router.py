from fastapi import APIRouter

from leave_service.api.leaves import leaves_router

api_router = APIRouter()
api_router.include_router(leaves_router)
