import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db import Base, engine, get_db, ensure_schema
from .cleanup import purge_expired_sessions
from .errors import RevisionHubError
from .logging_config import setup_logging
from .settings import settings
from .routers import health
from .routers import auth
from .routers import topics
from .routers import dashboard

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Revision Hub API")
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_origin_list,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(topics.router)
app.include_router(dashboard.router)


@app.exception_handler(RevisionHubError)
async def revision_hub_error_handler(request: Request, exc: RevisionHubError):
	headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
	return JSONResponse(
		status_code=exc.status_code,
		content={"detail": exc.detail, "error_code": exc.error_code},
		headers=headers,
	)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
	logger.error(
		f"Unhandled exception: {exc}",
		exc_info=True,
		extra={"extra_fields": {"method": request.method, "path": request.url.path}},
	)
	return JSONResponse(status_code=500, content={"detail": "Internal server error", "error_code": "INTERNAL_ERROR"})


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight dev migrations
	ensure_schema()
	# Drop sessions whose tokens have expired
	db = next(get_db())
	try:
		purge_expired_sessions(db)
	finally:
		db.close()
	logger.info("Revision Hub API started (schedule timezone %s)", settings.schedule_timezone)
