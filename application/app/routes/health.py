from fastapi import APIRouter
from fastapi.responses import JSONResponse

# Settings
from app.config.settings import SinglespineConfigs
configs = SinglespineConfigs()

router = APIRouter()

@router.get("/health")
async def health_check():

    details = {
        "status": "healthy",
        "version": configs.APP_VERSION,
        "service": configs.APP_NAME
    }
    return JSONResponse(content=details)
