import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.api.attendance import router as attendance_router
from app.api.groups import router as groups_router
from app.api.milestones import router as milestones_router
from app.api.people import router as people_router
from app.api.progress import router as progress_router
from app.db import Base, engine
from app.models.milestone import Milestone  # noqa: F401  (import ensures table is registered)
from app.models.group import Group  # noqa: F401
from app.models.person import Person  # noqa: F401
from app.models.progress_record import ProgressRecord  # noqa: F401
from app.models.attendance_record import AttendanceRecord  # noqa: F401
from app.models.user import User  # noqa: F401
from app.core.config import settings
from app.core.errors import APIException
from app.core.logging import setup_logging


setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Discipleship Progress")

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create DB tables on startup
Base.metadata.create_all(bind=engine)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code},
        headers=exc.headers,
    )


app.include_router(milestones_router)
app.include_router(people_router)
app.include_router(progress_router)
app.include_router(attendance_router)
app.include_router(groups_router)


@app.get("/")
def root():
    return {"message": "Discipleship progress backend is running"}
