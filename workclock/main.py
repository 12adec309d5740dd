"""FastAPI application for workclock."""
from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import entries
from .aggregation import month_bounds, summarize_entries
from .auth import create_access_token, get_password_hash, verify_password
from .clock import apply_clock_action, get_clock_status
from .config import get_settings
from .db import Storage
from .dependencies import configure_logging, get_current_user_id, get_storage
from .errors import WorkclockError
from .models import (
    ClockActionRequest,
    ClockStatus,
    SettingsUpdate,
    Token,
    UserCreate,
    UserLogin,
    UserResponse,
    UserSettings,
    WorkEntry,
    WorkEntryCreate,
    WorkEntryUpdate,
)

config = get_settings()
logger = configure_logging(config.log_level)


def create_app(storage: Optional[Storage] = None) -> FastAPI:
    """
    Build the API. The storage collaborator is injected once per process;
    when none is given it is opened from WORKCLOCK_DB_PATH at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "storage", None) is None:
            app.state.storage = Storage(config.db_path)
            logger.info("Opened database at %s", config.db_path)
        yield
        logger.info("workclock API shutting down")

    app = FastAPI(title="workclock API", lifespan=lifespan)
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    _register_handlers(app)
    _register_routes(app)
    return app


def _register_handlers(app: FastAPI):

    @app.exception_handler(WorkclockError)
    async def workclock_error_handler(request: Request, exc: WorkclockError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report malformed input per field."""
        errors = []
        for e in exc.errors():
            field = ".".join(str(loc) for loc in e.get("loc", []) if loc not in ("body", "query", "path"))
            errors.append({"field": field, "message": e.get("msg", "Invalid value")})
        return JSONResponse(status_code=422, content={"detail": errors})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def _register_routes(app: FastAPI):

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # --- Auth ---

    @app.post("/auth/register", response_model=UserResponse)
    def register(user: UserCreate, storage: Storage = Depends(get_storage)):
        if storage.find_user_by_email(user.email):
            raise HTTPException(status_code=400, detail="Email already registered")

        row = storage.create_user(user.email, user.name, get_password_hash(user.password))
        logger.info("Registered user %s", row["id"])
        return {"id": row["id"], "email": row["email"], "name": row["name"], "created_at": row["created_at"]}

    @app.post("/auth/login", response_model=Token)
    def login(creds: UserLogin, storage: Storage = Depends(get_storage)):
        row = storage.find_user_by_email(creds.email)
        if not row or not verify_password(creds.password, row["password_hash"]):
            logger.info("Failed login for %s", creds.email)
            raise HTTPException(status_code=401, detail="Incorrect email or password")

        token = create_access_token({"sub": row["id"], "email": row["email"], "name": row["name"]})
        user_data = {"id": row["id"], "email": row["email"], "name": row["name"], "created_at": row["created_at"]}
        return {"access_token": token, "token_type": "bearer", "user": user_data}

    # --- Clock ---

    @app.get("/clock", response_model=ClockStatus, response_model_exclude_none=True)
    def clock_status(user_id: str = Depends(get_current_user_id), storage: Storage = Depends(get_storage)):
        return get_clock_status(storage, user_id)

    @app.post("/clock", response_model=ClockStatus, response_model_exclude_none=True)
    def clock_action(
        req: ClockActionRequest,
        user_id: str = Depends(get_current_user_id),
        storage: Storage = Depends(get_storage),
    ):
        return apply_clock_action(storage, user_id, req.action, client_time=req.client_time, location=req.location)

    # --- Settings ---

    @app.get("/settings", response_model=UserSettings)
    def read_settings(user_id: str = Depends(get_current_user_id), storage: Storage = Depends(get_storage)):
        return storage.get_or_create_settings(user_id)

    @app.put("/settings", response_model=UserSettings)
    def update_settings(
        req: SettingsUpdate,
        user_id: str = Depends(get_current_user_id),
        storage: Storage = Depends(get_storage),
    ):
        settings = storage.update_settings(user_id, req.model_dump(exclude_none=True))
        logger.info("Updated settings for user=%s", user_id)
        return settings

    # --- Work entries ---

    @app.get("/work-entries", response_model=List[WorkEntry])
    def list_work_entries(
        month: Optional[int] = Query(default=None, ge=1, le=12),
        year: Optional[int] = Query(default=None, ge=1970, le=9999),
        user_id: str = Depends(get_current_user_id),
        storage: Storage = Depends(get_storage),
    ):
        return entries.list_entries(storage, user_id, month, year)

    @app.post("/work-entries", response_model=WorkEntry, status_code=201)
    def create_work_entry(
        req: WorkEntryCreate,
        user_id: str = Depends(get_current_user_id),
        storage: Storage = Depends(get_storage),
    ):
        return entries.create_entry(storage, user_id, req.model_dump())

    @app.put("/work-entries/{entry_id}", response_model=WorkEntry)
    def update_work_entry(
        entry_id: int,
        req: WorkEntryUpdate,
        user_id: str = Depends(get_current_user_id),
        storage: Storage = Depends(get_storage),
    ):
        return entries.update_entry(storage, user_id, entry_id, req.model_dump(exclude_none=True))

    @app.delete("/work-entries/{entry_id}")
    def delete_work_entry(
        entry_id: int,
        user_id: str = Depends(get_current_user_id),
        storage: Storage = Depends(get_storage),
    ):
        entries.delete_entry(storage, user_id, entry_id)
        return {"ok": True}

    # --- Reports ---

    @app.get("/summary")
    def monthly_summary(
        month: Optional[int] = Query(default=None, ge=1, le=12),
        year: Optional[int] = Query(default=None, ge=1970, le=9999),
        user_id: str = Depends(get_current_user_id),
        storage: Storage = Depends(get_storage),
    ):
        today = date.today()
        month = month or today.month
        year = year or today.year
        start, end = month_bounds(month, year)
        settings = storage.get_or_create_settings(user_id)
        summary = summarize_entries(storage.find_entries(user_id, start, end), settings)
        return {"month": month, "year": year, **summary}


app = create_app()
