from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check(request: Request):
    engine = getattr(request.app.state, "revision_service", None)
    return {"status": "healthy", "ready": engine is not None}
