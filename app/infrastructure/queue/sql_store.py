"""SQL-backed durable job queue.

Jobs live in the ``queue_jobs`` table so they survive restarts and can be
shared by workers in several processes. Claims use a compare-and-set update
on the row's state and lease, so only one worker wins a given job.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterator, List, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    case,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from infrastructure.logging import get_module_logger
from infrastructure.persistence import Base, Database, PersistenceError
from infrastructure.queue.errors import QueueOperationError
from infrastructure.queue.models import Job, JobOptions, JobState, utcnow
from infrastructure.queue.store import claim_lost, prune_completed

logger = get_module_logger()

# Rows inspected per claim attempt before giving up on contention
CLAIM_CANDIDATES = 5


class JobRow(Base):
    __tablename__ = "queue_jobs"
    __table_args__ = (
        Index("ix_queue_jobs_claim", "queue_name", "state", "priority", "available_at"),
    )

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    queue_name: Mapped[str] = mapped_column(String(100))
    data: Mapped[dict] = mapped_column(JSON)
    priority: Mapped[int] = mapped_column(Integer, default=0)
    lifo: Mapped[bool] = mapped_column(Boolean, default=False)
    max_attempts: Mapped[int] = mapped_column(Integer, default=1)
    backoff_delay_ms: Mapped[int] = mapped_column(Integer, default=0)
    timeout_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    attempts_made: Mapped[int] = mapped_column(Integer, default=0)
    releases: Mapped[int] = mapped_column(Integer, default=0)
    state: Mapped[str] = mapped_column(String(16), default=JobState.WAITING.value)
    available_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    claimed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    claim_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    finished_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    remove_on_complete_age_seconds: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    remove_on_complete_count: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )


class QueueStateRow(Base):
    __tablename__ = "queue_state"

    queue_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    paused: Mapped[bool] = mapped_column(Boolean, default=False)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_job(row: JobRow) -> Job:
    return Job(
        id=row.id,
        queue_name=row.queue_name,
        data=dict(row.data or {}),
        priority=row.priority,
        lifo=row.lifo,
        max_attempts=row.max_attempts,
        backoff_delay_ms=row.backoff_delay_ms,
        timeout_ms=row.timeout_ms,
        attempts_made=row.attempts_made,
        releases=row.releases or 0,
        state=JobState(row.state),
        seq=row.seq,
        available_at=_aware(row.available_at),
        created_at=_aware(row.created_at),
        claimed_by=row.claimed_by,
        claim_expires_at=_aware(row.claim_expires_at),
        started_at=_aware(row.started_at),
        finished_at=_aware(row.finished_at),
        last_error=row.last_error,
        remove_on_complete_age_seconds=row.remove_on_complete_age_seconds,
        remove_on_complete_count=row.remove_on_complete_count,
    )


class SqlJobQueue:
    """JobQueue implementation on a relational database.

    Args:
        database: Shared Database (engine + sessions)
        name: Queue name; several queues can share the table
        clock: Source of the current UTC time, injectable for tests
    """

    def __init__(
        self,
        database: Database,
        name: str = "notifications",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.database = database
        self.name = name
        self._clock = clock or utcnow

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            with self.database.session_scope() as session:
                yield session
        except PersistenceError as e:
            logger.error(
                "queue_operation_failed",
                queue=self.name,
                operation=operation,
                error=str(e),
            )
            raise QueueOperationError(
                f"Queue operation '{operation}' failed", e
            ) from e

    def _row_by_id(self, session: Session, job_id: str) -> Optional[JobRow]:
        return session.scalar(
            select(JobRow).where(JobRow.queue_name == self.name, JobRow.id == job_id)
        )

    def _claimed_row(
        self, session: Session, job_id: str, worker_id: Optional[str], operation: str
    ) -> Optional[JobRow]:
        """Load a job for settlement, or None if missing or owned elsewhere."""
        row = session.scalar(
            select(JobRow)
            .where(JobRow.queue_name == self.name, JobRow.id == job_id)
            .with_for_update()
        )
        if row is None:
            logger.warning(f"job_{operation}_not_found", queue=self.name, job_id=job_id)
            return None
        if claim_lost(row.claimed_by, worker_id):
            logger.warning(
                "job_claim_lost",
                queue=self.name,
                job_id=job_id,
                worker=worker_id,
                current_worker=row.claimed_by,
                operation=operation,
            )
            return None
        return row

    def add(self, data: Dict, options: JobOptions) -> Job:
        with self._session("add") as session:
            now = self._clock()
            job_id = options.job_id or str(uuid4())
            existing = self._row_by_id(session, job_id)
            if existing is not None:
                logger.debug("job_already_exists", queue=self.name, job_id=job_id)
                return _to_job(existing)

            row = JobRow(
                id=job_id,
                queue_name=self.name,
                data=dict(data),
                priority=options.priority,
                lifo=options.lifo,
                max_attempts=options.attempts,
                backoff_delay_ms=options.backoff_delay_ms,
                timeout_ms=options.timeout_ms,
                attempts_made=0,
                releases=0,
                state=JobState.WAITING.value,
                available_at=now + timedelta(milliseconds=options.delay_ms or 0),
                created_at=now,
                remove_on_complete_age_seconds=options.remove_on_complete_age_seconds,
                remove_on_complete_count=options.remove_on_complete_count,
            )
            session.add(row)
            session.flush()
            job = _to_job(row)

        logger.info(
            "job_added",
            queue=self.name,
            job_id=job.id,
            priority=job.priority,
            delay_ms=options.delay_ms or 0,
            max_attempts=job.max_attempts,
        )
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._session("get_job") as session:
            row = self._row_by_id(session, job_id)
            return _to_job(row) if row else None

    def list_jobs(self, states: Optional[List[JobState]] = None) -> List[Job]:
        with self._session("list_jobs") as session:
            stmt = select(JobRow).where(JobRow.queue_name == self.name)
            if states is not None:
                stmt = stmt.where(JobRow.state.in_([s.value for s in states]))
            return [_to_job(row) for row in session.scalars(stmt.order_by(JobRow.seq))]

    def remove(self, job_id: str) -> bool:
        with self._session("remove") as session:
            result = session.execute(
                delete(JobRow).where(
                    JobRow.queue_name == self.name,
                    JobRow.id == job_id,
                    JobRow.state == JobState.WAITING.value,
                )
            )
            removed = result.rowcount == 1
        if removed:
            logger.info("job_removed", queue=self.name, job_id=job_id)
        return removed

    def remove_where(self, predicate: Callable[[Job], bool]) -> int:
        with self._session("remove_where") as session:
            rows = session.scalars(
                select(JobRow).where(
                    JobRow.queue_name == self.name,
                    JobRow.state == JobState.WAITING.value,
                )
            ).all()
            matched = [row.seq for row in rows if predicate(_to_job(row))]
            removed = 0
            if matched:
                result = session.execute(
                    delete(JobRow).where(
                        JobRow.seq.in_(matched),
                        JobRow.state == JobState.WAITING.value,
                    )
                )
                removed = result.rowcount
        if removed:
            logger.info("jobs_removed", queue=self.name, count=removed)
        return removed

    def claim_next(self, worker_id: str, lease_seconds: int) -> Optional[Job]:
        with self._session("claim_next") as session:
            if self._is_paused(session):
                return None

            now = self._clock()
            eligible = (
                (JobRow.state == JobState.WAITING.value) & (JobRow.available_at <= now)
            ) | (
                (JobRow.state == JobState.ACTIVE.value)
                & (JobRow.claim_expires_at <= now)
            )
            stmt = (
                select(JobRow)
                .where(JobRow.queue_name == self.name, eligible)
                .order_by(
                    JobRow.priority.asc(),
                    case((JobRow.lifo.is_(True), -JobRow.seq), else_=JobRow.seq).asc(),
                )
                .limit(CLAIM_CANDIDATES)
            )
            if self.database.dialect == "postgresql":
                stmt = stmt.with_for_update(skip_locked=True)

            for row in session.scalars(stmt).all():
                lease_guard = (
                    JobRow.claim_expires_at.is_(None)
                    if row.claim_expires_at is None
                    else JobRow.claim_expires_at == row.claim_expires_at
                )
                values = {
                    "state": JobState.ACTIVE.value,
                    "claimed_by": worker_id,
                    "claim_expires_at": now + timedelta(seconds=lease_seconds),
                    "started_at": now,
                }
                result = session.execute(
                    update(JobRow)
                    .where(JobRow.seq == row.seq, JobRow.state == row.state, lease_guard)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    continue

                if row.state == JobState.ACTIVE.value:
                    logger.warning(
                        "job_stalled_reclaimed",
                        queue=self.name,
                        job_id=row.id,
                        previous_worker=row.claimed_by,
                    )
                job = _to_job(row)
                job.state = JobState.ACTIVE
                job.claimed_by = worker_id
                job.claim_expires_at = values["claim_expires_at"]
                job.started_at = now
                logger.debug(
                    "job_claimed", queue=self.name, job_id=job.id, worker=worker_id
                )
                return job
            return None

    def complete(self, job_id: str, worker_id: Optional[str] = None) -> bool:
        with self._session("complete") as session:
            row = self._claimed_row(session, job_id, worker_id, "complete")
            if row is None:
                return False
            now = self._clock()
            row.state = JobState.COMPLETED.value
            row.finished_at = now
            row.claimed_by = None
            row.claim_expires_at = None
            session.flush()
            attempts_made = row.attempts_made

            if (
                row.remove_on_complete_age_seconds is not None
                or row.remove_on_complete_count is not None
            ):
                completed = [
                    _to_job(r)
                    for r in session.scalars(
                        select(JobRow).where(
                            JobRow.queue_name == self.name,
                            JobRow.state == JobState.COMPLETED.value,
                        )
                    )
                ]
                doomed = prune_completed(
                    completed,
                    now,
                    row.remove_on_complete_age_seconds,
                    row.remove_on_complete_count,
                )
                if doomed:
                    session.execute(
                        delete(JobRow)
                        .where(JobRow.seq.in_([j.seq for j in doomed]))
                        .execution_options(synchronize_session=False)
                    )

        logger.info(
            "job_completed",
            queue=self.name,
            job_id=job_id,
            attempts_made=attempts_made,
        )
        return True

    def fail(
        self,
        job_id: str,
        error: str,
        retryable: bool = True,
        worker_id: Optional[str] = None,
    ) -> Optional[Job]:
        with self._session("fail") as session:
            row = self._claimed_row(session, job_id, worker_id, "fail")
            if row is None:
                return None

            now = self._clock()
            row.attempts_made += 1
            row.last_error = error
            row.claimed_by = None
            row.claim_expires_at = None

            job = _to_job(row)
            if retryable and row.attempts_made < row.max_attempts:
                backoff = job.backoff_for_attempt(row.attempts_made)
                row.state = JobState.WAITING.value
                row.available_at = now + backoff
                logger.info(
                    "job_retry_scheduled",
                    queue=self.name,
                    job_id=job_id,
                    attempts_made=row.attempts_made,
                    max_attempts=row.max_attempts,
                    backoff_ms=int(backoff.total_seconds() * 1000),
                )
            else:
                row.state = JobState.FAILED.value
                row.finished_at = now
                logger.warning(
                    "job_failed",
                    queue=self.name,
                    job_id=job_id,
                    attempts_made=row.attempts_made,
                    retryable=retryable,
                    error=error,
                )
            session.flush()
            return _to_job(row)

    def release(
        self, job_id: str, delay_ms: int, worker_id: Optional[str] = None
    ) -> Optional[Job]:
        with self._session("release") as session:
            row = self._claimed_row(session, job_id, worker_id, "release")
            if row is None:
                return None

            row.releases = (row.releases or 0) + 1
            row.state = JobState.WAITING.value
            row.available_at = self._clock() + timedelta(milliseconds=delay_ms)
            row.claimed_by = None
            row.claim_expires_at = None
            session.flush()
            logger.info(
                "job_released",
                queue=self.name,
                job_id=job_id,
                releases=row.releases,
                delay_ms=delay_ms,
            )
            return _to_job(row)

    def get_counts(self) -> Dict[str, int]:
        with self._session("get_counts") as session:
            now = self._clock()
            by_state = dict(
                session.execute(
                    select(JobRow.state, func.count())
                    .where(JobRow.queue_name == self.name)
                    .group_by(JobRow.state)
                ).all()
            )
            delayed = session.scalar(
                select(func.count()).where(
                    JobRow.queue_name == self.name,
                    JobRow.state == JobState.WAITING.value,
                    JobRow.available_at > now,
                )
            )
            paused = self._is_paused(session)

        ready = by_state.get(JobState.WAITING.value, 0) - (delayed or 0)
        return {
            "waiting": 0 if paused else ready,
            "delayed": delayed or 0,
            "active": by_state.get(JobState.ACTIVE.value, 0),
            "completed": by_state.get(JobState.COMPLETED.value, 0),
            "failed": by_state.get(JobState.FAILED.value, 0),
            "paused": ready if paused else 0,
        }

    def _is_paused(self, session: Session) -> bool:
        state = session.get(QueueStateRow, self.name)
        return bool(state and state.paused)

    def _set_paused(self, paused: bool) -> None:
        with self._session("pause" if paused else "resume") as session:
            state = session.get(QueueStateRow, self.name)
            if state is None:
                session.add(QueueStateRow(queue_name=self.name, paused=paused))
            else:
                state.paused = paused

    def pause(self) -> None:
        self._set_paused(True)
        logger.info("queue_paused", queue=self.name)

    def resume(self) -> None:
        self._set_paused(False)
        logger.info("queue_resumed", queue=self.name)

    def is_paused(self) -> bool:
        with self._session("is_paused") as session:
            return self._is_paused(session)
