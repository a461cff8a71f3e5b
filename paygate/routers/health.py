from fastapi import APIRouter

from ..config import settings

router = APIRouter(tags=["Health"])


@router.get("")
def health():
    return {"status": "ok", "app": settings.APP_NAME, "version": settings.APP_VERSION}
