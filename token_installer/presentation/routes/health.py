from fastapi import APIRouter

from token_installer.schemas.responses import HealthOut


router = APIRouter(tags=["Health"])


@router.get("/healthz", response_model=HealthOut)
async def healthz() -> HealthOut:
    return HealthOut()
