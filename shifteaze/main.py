from __future__ import annotations

import logging
import os
import secrets
from datetime import date, datetime, timedelta, timezone

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from shifteaze.blocks import BlockCandidate, BlockType, ScheduleBlock, parse_month
from shifteaze.controller import BlockGridController
from shifteaze.db import get_db
from shifteaze.directory import Employee, SqlEmployeeDirectory, job_titles
from shifteaze.exceptions import BlockValidationError, EmployeeDirectoryUnavailable
from shifteaze.models import Manager, SessionRecord, WorkerRecord
from shifteaze.rows import row_count
from shifteaze.security import hash_password, verify_password
from shifteaze.store import ScopedBlockStore, SqlKeyValueStore

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="ShiftEaze")

SESSION_COOKIE_NAME = "session_id"
SESSION_MAX_AGE_SECONDS = 14 * 24 * 60 * 60


@app.middleware("http")
async def disable_cache_for_auth_and_api(request: Request, call_next):
    response = await call_next(request)
    path = request.url.path
    if path.startswith("/api/") or path.startswith("/auth/"):
        response.headers["Cache-Control"] = "no-store, no-cache, max-age=0, must-revalidate"
        response.headers["Pragma"] = "no-cache"
    return response


class RegisterPayload(BaseModel):
    email: str
    password: str
    display_name: str = ""


class AuthPayload(BaseModel):
    email: str
    password: str


class ManagerOut(BaseModel):
    id: int
    email: str
    display_name: str
    created_at: datetime

    @classmethod
    def from_orm_manager(cls, manager: Manager) -> "ManagerOut":
        return cls(
            id=manager.id,
            email=manager.email,
            display_name=manager.display_name,
            created_at=manager.created_at,
        )


class BlockCreatePayload(BaseModel):
    job_title: str = Field(min_length=1)
    month: str
    type: BlockType
    start_date: str | None = None
    end_date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    employee_id: str | None = None


class BlockGridOut(BaseModel):
    job_title: str
    month: str
    rows: int
    blocks: list[ScheduleBlock]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def ensure_valid_email(email: str) -> str:
    normalized = normalize_email(email)
    if "@" not in normalized or normalized.startswith("@") or normalized.endswith("@"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A valid email is required")
    return normalized


def ensure_password_strength(password: str) -> None:
    if len(password) < 10:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password must be at least 10 characters")


def request_is_https(request: Request) -> bool:
    forwarded_proto = request.headers.get("x-forwarded-proto", "")
    if forwarded_proto:
        first_proto = forwarded_proto.split(",")[0].strip().lower()
        if first_proto:
            return first_proto == "https"
    return request.url.scheme == "https"


def set_session_cookie(response: Response, request: Request, session_id: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        max_age=SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=request_is_https(request),
        path="/",
    )


def clear_session_cookie(response: Response, request: Request) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=request_is_https(request),
        path="/",
    )


def create_session(db: Session, manager_id: int) -> str:
    while True:
        session_id = secrets.token_urlsafe(32)
        if db.get(SessionRecord, session_id) is None:
            break
    db.add(
        SessionRecord(
            session_id=session_id,
            manager_id=manager_id,
            expires_at=utcnow() + timedelta(seconds=SESSION_MAX_AGE_SECONDS),
        )
    )
    db.commit()
    return session_id


def get_session_manager(db: Session, session_id: str | None) -> Manager | None:
    if not session_id:
        return None
    session = db.get(SessionRecord, session_id)
    if session is None:
        return None
    expires_at = session.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at <= utcnow():
        db.delete(session)
        db.commit()
        return None
    return db.get(Manager, session.manager_id)


def get_current_manager(request: Request, db: Session = Depends(get_db)) -> Manager:
    manager = get_session_manager(db, request.cookies.get(SESSION_COOKIE_NAME))
    if manager is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return manager


def month_from_query(month: str) -> date:
    try:
        return parse_month(month)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def build_controller(db: Session, manager: Manager, job_title: str, month: str) -> BlockGridController:
    controller = BlockGridController(
        directory=SqlEmployeeDirectory(db, manager.id),
        store=ScopedBlockStore(SqlKeyValueStore(db, manager.id)),
        month=month_from_query(month),
    )
    controller.refresh_roster()
    controller.select_job_title(job_title)
    return controller


def serialize_grid(controller: BlockGridController) -> BlockGridOut:
    scope = controller.scope
    blocks = controller.blocks
    return BlockGridOut(job_title=scope.job_title, month=scope.month, rows=row_count(blocks), blocks=blocks)


@app.post("/auth/register", response_model=ManagerOut, status_code=status.HTTP_201_CREATED)
def auth_register(
    payload: RegisterPayload,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> ManagerOut:
    email = ensure_valid_email(payload.email)
    ensure_password_strength(payload.password)
    if db.scalar(select(Manager).where(Manager.email == email)) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Manager already exists")
    manager = Manager(
        email=email,
        display_name=payload.display_name.strip(),
        password_hash=hash_password(payload.password),
    )
    db.add(manager)
    db.commit()
    db.refresh(manager)
    set_session_cookie(response, request, create_session(db, manager.id))
    return ManagerOut.from_orm_manager(manager)


@app.post("/auth/login", response_model=ManagerOut)
def auth_login(
    payload: AuthPayload,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> ManagerOut:
    email = ensure_valid_email(payload.email)
    manager = db.scalar(select(Manager).where(Manager.email == email))
    if manager is None or not verify_password(payload.password, manager.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    set_session_cookie(response, request, create_session(db, manager.id))
    return ManagerOut.from_orm_manager(manager)


@app.post("/auth/logout")
def auth_logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> dict[str, bool]:
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    if session_id:
        session = db.get(SessionRecord, session_id)
        if session is not None:
            db.delete(session)
            db.commit()
    clear_session_cookie(response, request)
    return {"ok": True}


@app.get("/auth/me", response_model=ManagerOut)
def auth_me(current_manager: Manager = Depends(get_current_manager)) -> ManagerOut:
    return ManagerOut.from_orm_manager(current_manager)


@app.get("/api/employees", response_model=list[Employee])
def get_employees(
    current_manager: Manager = Depends(get_current_manager),
    db: Session = Depends(get_db),
) -> list[Employee]:
    try:
        return SqlEmployeeDirectory(db, current_manager.id).list_employees()
    except EmployeeDirectoryUnavailable as exc:
        logger.warning("Roster unavailable for manager %s: %s", current_manager.id, exc)
        return []


@app.put("/api/employees", response_model=list[Employee])
def put_employees(
    employees: list[Employee] = Body(...),
    current_manager: Manager = Depends(get_current_manager),
    db: Session = Depends(get_db),
) -> list[Employee]:
    employee_ids = [employee.id for employee in employees]
    if len(employee_ids) != len(set(employee_ids)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Employee ids must be unique")
    db.execute(delete(WorkerRecord).where(WorkerRecord.manager_id == current_manager.id))
    for index, employee in enumerate(employees):
        db.add(
            WorkerRecord(
                manager_id=current_manager.id,
                worker_id=employee.id,
                first_name=employee.first_name,
                last_name=employee.last_name,
                position=employee.position,
                photo_url=employee.photo_url,
                sort_order=index,
            )
        )
    db.commit()
    return employees


@app.get("/api/job-titles", response_model=list[str])
def get_job_titles(
    current_manager: Manager = Depends(get_current_manager),
    db: Session = Depends(get_db),
) -> list[str]:
    return job_titles(get_employees(current_manager, db))


@app.get("/api/blocks", response_model=BlockGridOut)
def get_blocks(
    job_title: str = Query(..., min_length=1),
    month: str = Query(...),
    current_manager: Manager = Depends(get_current_manager),
    db: Session = Depends(get_db),
) -> BlockGridOut:
    return serialize_grid(build_controller(db, current_manager, job_title, month))


@app.post("/api/blocks", response_model=ScheduleBlock, status_code=status.HTTP_201_CREATED)
def create_block(
    payload: BlockCreatePayload,
    current_manager: Manager = Depends(get_current_manager),
    db: Session = Depends(get_db),
) -> ScheduleBlock:
    controller = build_controller(db, current_manager, payload.job_title, payload.month)
    controller.select_block_type(payload.type)
    candidate = BlockCandidate(
        block_type=payload.type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        employee_id=payload.employee_id,
    )
    try:
        return controller.create(candidate)
    except BlockValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"kind": exc.kind, "message": exc.message},
        ) from exc


@app.delete("/api/blocks")
def delete_all_blocks(
    job_title: str = Query(..., min_length=1),
    month: str = Query(...),
    current_manager: Manager = Depends(get_current_manager),
    db: Session = Depends(get_db),
) -> dict[str, int | bool]:
    controller = build_controller(db, current_manager, job_title, month)
    deleted_count = controller.clear_all()
    return {"ok": True, "deleted": deleted_count}


@app.get("/health")
def health() -> dict[str, bool | str]:
    return {"ok": True, "env": os.getenv("ENVIRONMENT", "local")}
