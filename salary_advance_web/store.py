"""Persistence layer for the schedule table and submitted applications.

The schedule table lives under a single named key, the way the calculator
always read it from one storage slot. Applications are stored one row each
with their full record as JSON plus the columns used for lookups. It defaults
to SQLite for local development, but accepts any SQLAlchemy-compatible URL
(e.g. PostgreSQL/MySQL).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from salary_advance.applications import application_from_dict, application_to_dict
from salary_advance.data_models import Application, ScheduleEntry
from salary_advance.schedule import DEFAULT_SCHEDULE, schedule_from_records, schedule_to_records

logger = logging.getLogger(__name__)

Base = declarative_base()

SCHEDULE_KEY = "xtenda_schedule"


class ScheduleTableModel(Base):
    __tablename__ = "schedule_tables"

    key = Column(String(64), primary_key=True)
    rows_json = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ApplicationModel(Base):
    __tablename__ = "applications"

    id = Column(String(64), primary_key=True)
    nrc = Column(String(64), index=True, nullable=False, default="")
    status = Column(String(32), index=True, nullable=False)
    submitted_at = Column(String(40), nullable=False)
    record_json = Column(Text, nullable=False)


class SalaryAdvanceStore:
    """Database-backed store for the schedule table and applications."""

    def __init__(self, url: str, *, schedule_key: str = SCHEDULE_KEY) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._schedule_key = schedule_key

    # Schedule table

    def get_schedule(self) -> List[ScheduleEntry]:
        """Return the stored schedule, or the base table when none is stored."""
        with self._session_factory() as session:
            row = session.get(ScheduleTableModel, self._schedule_key)
            if row is None:
                return list(DEFAULT_SCHEDULE)
            return schedule_from_records(json.loads(row.rows_json))

    def save_schedule(self, table: Iterable[ScheduleEntry]) -> None:
        rows_json = json.dumps(schedule_to_records(table))
        with self._session_factory() as session:
            row = session.get(ScheduleTableModel, self._schedule_key)
            if row is None:
                session.add(ScheduleTableModel(key=self._schedule_key, rows_json=rows_json))
            else:
                row.rows_json = rows_json
            session.commit()
        logger.info("Saved schedule table %r", self._schedule_key)

    # Applications

    def add_application(self, application: Application) -> None:
        payload = ApplicationModel(
            id=application.id,
            nrc=application.nrc,
            status=application.status,
            submitted_at=application.submitted_at,
            record_json=json.dumps(application_to_dict(application)),
        )
        with self._session_factory() as session:
            session.add(payload)
            session.commit()
        logger.info("Stored application %s", application.id)

    def get_application(self, application_id: str) -> Optional[Application]:
        with self._session_factory() as session:
            row = session.get(ApplicationModel, application_id)
            return self._to_application(row) if row else None

    def list_applications(self, status: Optional[str] = None) -> List[Application]:
        """Return applications newest first, optionally only those with ``status``."""
        query = select(ApplicationModel)
        if status:
            query = query.where(ApplicationModel.status == status)
        query = query.order_by(ApplicationModel.submitted_at.desc())
        with self._session_factory() as session:
            rows: Sequence[ApplicationModel] = session.execute(query).scalars().all()
            return [self._to_application(row) for row in rows]

    def find_latest_by_nrc(self, nrc: str) -> Optional[Application]:
        if not nrc:
            return None
        with self._session_factory() as session:
            row = session.execute(
                select(ApplicationModel)
                .where(ApplicationModel.nrc == nrc)
                .order_by(ApplicationModel.submitted_at.desc())
                .limit(1)
            ).scalars().first()
            return self._to_application(row) if row else None

    def update_application(self, application: Application) -> bool:
        """Overwrite a stored application; returns False when it does not exist."""
        with self._session_factory() as session:
            row = session.get(ApplicationModel, application.id)
            if row is None:
                return False
            row.nrc = application.nrc
            row.status = application.status
            row.record_json = json.dumps(application_to_dict(application))
            session.commit()
        return True

    def delete_application(self, application_id: str) -> bool:
        with self._session_factory() as session:
            row = session.get(ApplicationModel, application_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.info("Deleted application %s", application_id)
        return True

    @staticmethod
    def _to_application(row: ApplicationModel) -> Application:
        return application_from_dict(json.loads(row.record_json))


def create_store_from_env(url: str | None) -> SalaryAdvanceStore:
    return SalaryAdvanceStore(url or "sqlite:///salary_advance.sqlite3")
