# crowdwatch/storage.py
from __future__ import annotations
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Iterator

from sqlalchemy import create_engine, func, String, DateTime, JSON, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Mapped, mapped_column, Session

from crowdwatch.config.settings import DATABASE_URL
from crowdwatch.exceptions import PersistenceError
from crowdwatch.logger import setup_logger

logger = setup_logger(__name__)

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL not set")

engine = create_engine(DATABASE_URL, future=True, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

IS_SQLITE = DATABASE_URL.startswith("sqlite")

if IS_SQLITE:
    UUID_TYPE = String(36)
    JSON_TYPE = JSON
    def UUID_DEFAULT() -> str:
        return str(uuid.uuid4())
else:
    from sqlalchemy.dialects.postgresql import UUID as PG_UUID, JSONB as PG_JSONB
    UUID_TYPE = PG_UUID(as_uuid=True)
    JSON_TYPE = PG_JSONB
    UUID_DEFAULT = uuid.uuid4

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Video(Base):
    __tablename__ = "videos"
    id: Mapped[str] = mapped_column(UUID_TYPE, primary_key=True, default=UUID_DEFAULT)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(512), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_PROCESSING)
    # "metadata" is reserved on declarative classes
    meta: Mapped[dict] = mapped_column("metadata", JSON_TYPE, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)


class Analysis(Base):
    __tablename__ = "analysis"
    id: Mapped[str] = mapped_column(UUID_TYPE, primary_key=True, default=UUID_DEFAULT)
    video_id: Mapped[str] = mapped_column(UUID_TYPE, nullable=False, index=True)
    crowd_density: Mapped[dict] = mapped_column(JSON_TYPE, nullable=False, default=dict)
    incidents: Mapped[list] = mapped_column(JSON_TYPE, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)


Base.metadata.create_all(bind=engine)


# -------------------------------
# Helpers
# -------------------------------
@contextmanager
def _db() -> Iterator[Session]:
    """Session scope; any SQLAlchemy failure surfaces as PersistenceError."""
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error: {e}")
        raise PersistenceError(str(e)) from e
    finally:
        db.close()


def _key(record_id: str):
    """Column key for an id string; None when it cannot be a valid id."""
    if IS_SQLITE:
        return str(record_id)
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        return None


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def _video_dict(row: Video) -> dict:
    return {
        "id": str(row.id),
        "user_id": row.user_id,
        "title": row.title,
        "file_path": row.file_path,
        "status": row.status,
        "metadata": row.meta,
        "created_at": _iso(row.created_at),
    }


def _analysis_dict(row: Analysis) -> dict:
    return {
        "id": str(row.id),
        "video_id": str(row.video_id),
        "crowd_density": row.crowd_density,
        "incidents": row.incidents,
        "created_at": _iso(row.created_at),
    }


# -------------------------------
# Videos
# -------------------------------
def save_video(user_id: str, title: str, file_path: str, metadata: Dict[str, Any],
               video_id: Optional[str] = None) -> dict:
    with _db() as db:
        row = Video(user_id=user_id, title=title, file_path=file_path,
                    status=STATUS_PROCESSING, meta=metadata or {})
        if video_id:
            row.id = _key(video_id)
        db.add(row); db.commit(); db.refresh(row)
        return _video_dict(row)


def get_video(video_id: str) -> Optional[dict]:
    key = _key(video_id)
    if key is None:
        return None
    with _db() as db:
        row = db.execute(select(Video).where(Video.id == key)).scalar_one_or_none()
        return _video_dict(row) if row else None


def list_videos(user_id: Optional[str] = None, limit: int = 50) -> List[dict]:
    with _db() as db:
        stmt = select(Video).order_by(Video.created_at.desc()).limit(limit)
        if user_id:
            stmt = stmt.where(Video.user_id == user_id)
        return [_video_dict(r) for r in db.execute(stmt).scalars().all()]


def mark_video_completed(video_id: str) -> None:
    """processing -> completed; there is no other transition."""
    with _db() as db:
        db.execute(
            update(Video).where(Video.id == _key(video_id)).values(status=STATUS_COMPLETED)
        )
        db.commit()


# -------------------------------
# Analysis
# -------------------------------
def save_analysis(video_id: str, crowd_density: Dict[str, Any], incidents: List[Dict[str, Any]]) -> dict:
    with _db() as db:
        row = Analysis(video_id=_key(video_id), crowd_density=crowd_density, incidents=incidents or [])
        db.add(row); db.commit(); db.refresh(row)
        return _analysis_dict(row)


def get_analysis(video_id: str) -> Optional[dict]:
    """Latest analysis row for a video, or None."""
    key = _key(video_id)
    if key is None:
        return None
    with _db() as db:
        stmt = (select(Analysis).where(Analysis.video_id == key)
                .order_by(Analysis.created_at.desc()).limit(1))
        row = db.execute(stmt).scalar_one_or_none()
        return _analysis_dict(row) if row else None


def count_analyses(video_id: Optional[str] = None) -> int:
    with _db() as db:
        stmt = select(func.count(Analysis.id))
        if video_id is not None:
            stmt = stmt.where(Analysis.video_id == _key(video_id))
        return db.execute(stmt).scalar() or 0


def store_summary() -> dict:
    with _db() as db:
        analyses = db.execute(select(func.count(Analysis.id))).scalar() or 0
        by_status = dict(db.execute(select(Video.status, func.count(Video.id)).group_by(Video.status)).all())
        return {
            "analyses": analyses,
            "videos": {
                STATUS_PROCESSING: by_status.get(STATUS_PROCESSING, 0),
                STATUS_COMPLETED: by_status.get(STATUS_COMPLETED, 0),
            },
        }


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    with engine.connect() as conn:
        conn.exec_driver_sql("SELECT 1")
