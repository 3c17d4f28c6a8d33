from fastapi import APIRouter

from ..scheduling import REVIEW_OFFSETS
from ..settings import settings

router = APIRouter(tags=["health"])


@router.get("/info")
def info():
	return {
		"status": "ok",
		"review_offsets": list(REVIEW_OFFSETS),
		"schedule_timezone": settings.schedule_timezone,
		"guest_enabled": settings.allow_guest,
	}
