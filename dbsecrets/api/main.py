from fastapi import APIRouter

from dbsecrets.api.routes import config, utils

api_router = APIRouter()
api_router.include_router(config.router)
api_router.include_router(utils.router)
