"""
SQLAlchemy persistence for program generation records.

Provides persistent storage for:
- Generation requests and their lifecycle status
- Profile snapshots taken at request time
- Accepted programs and the artifacts computed while generating them
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional, Protocol

from loguru import logger
from sqlalchemy import Column, DateTime, JSON, String, Text, create_engine, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from program_pipeline.exceptions import PersistenceError, RecordNotFoundError
from program_pipeline.program_schemas import TrainingProgram
from program_pipeline.schemas import (
    GenerationRecord,
    GenerationStatus,
    PipelineArtifacts,
    UserProfile,
)

Base = declarative_base()

CLAIMABLE_STATUSES = [GenerationStatus.PENDING.value, GenerationStatus.FAILED.value]


class GenerationRecordRow(Base):
    """
    One program generation request.

    Attributes:
        id: UUID primary key
        user_id: Owner of the request
        status: pending, processing, completed or failed
        profile_snapshot: UserProfile as JSON, captured at request time
        program_details: Accepted TrainingProgram as JSON (camelCase keys)
        generation_error: Failure message for the latest failed run
        generation_metadata: Timestamps, inferred parameters, plan decisions, validation report
        volume_landmarks: MEV/MAV/MRV per muscle group
        weak_point_analysis: WeakPointProtocol as JSON, if analyzed
        periodization_model: Display name of the chosen model
        ai_model_version: Model used by the text service
        created_at: When the request was made
        updated_at: Last status change
    """

    __tablename__ = "generation_records"

    id = Column(String(36), primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default=GenerationStatus.PENDING.value, index=True)
    profile_snapshot = Column(JSON, nullable=False)
    program_details = Column(JSON, nullable=True)
    generation_error = Column(Text, nullable=True)
    generation_metadata = Column(JSON, nullable=True)
    volume_landmarks = Column(JSON, nullable=True)
    weak_point_analysis = Column(JSON, nullable=True)
    periodization_model = Column(String, nullable=True)
    ai_model_version = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<GenerationRecordRow(id='{self.id}', user_id='{self.user_id}', status='{self.status}')>"


# Database connection and session management

def get_engine(database_url: str = "sqlite:///program_pipeline.db"):
    """
    Create SQLAlchemy engine.

    SQLite connections may be shared across threads; an in-memory SQLite
    URL uses a single static connection so every session sees the same data.

    Args:
        database_url: Database connection string (default: SQLite file)

    Returns:
        SQLAlchemy Engine instance
    """
    if database_url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)
    return create_engine(database_url, echo=False)


def get_session_factory(engine):
    """
    Create session factory.

    Args:
        engine: SQLAlchemy Engine instance

    Returns:
        Session factory (sessionmaker)
    """
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_database(database_url: str = "sqlite:///program_pipeline.db"):
    """
    Create all tables and return a session factory bound to them.

    Args:
        database_url: Database connection string

    Returns:
        Session factory (sessionmaker)
    """
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)
    return get_session_factory(engine)


class GenerationStore(Protocol):
    """Persistence contract the orchestrator depends on."""

    def create_generation_record(self, profile_snapshot: UserProfile) -> str:
        ...

    def claim_for_processing(self, record_id: str) -> bool:
        ...

    def update_generation_status(
        self,
        record_id: str,
        status: GenerationStatus,
        program: Optional[TrainingProgram] = None,
        error: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        artifacts: Optional[PipelineArtifacts] = None,
    ) -> None:
        ...

    def get_generation_record(self, record_id: str) -> GenerationRecord:
        ...


class SqlGenerationStore:
    """
    GenerationStore backed by SQLAlchemy.

    Every operation runs in its own short session and transaction. Driver
    errors are raised as PersistenceError.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "SqlGenerationStore":
        """Create tables if needed and return a store for the database."""
        return cls(init_database(database_url))

    def create_generation_record(self, profile_snapshot: UserProfile) -> str:
        """
        Insert a pending record for a profile.

        Returns:
            The new record's id
        """
        record_id = str(uuid.uuid4())
        row = GenerationRecordRow(
            id=record_id,
            user_id=profile_snapshot.user_id,
            status=GenerationStatus.PENDING.value,
            profile_snapshot=profile_snapshot.model_dump(mode="json"),
        )
        try:
            with self.session_factory() as session:
                session.add(row)
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to create generation record: {e}") from e

        logger.info(f"Created generation record {record_id} for user_id={profile_snapshot.user_id}")
        return record_id

    def claim_for_processing(self, record_id: str) -> bool:
        """
        Atomically move a pending or failed record to processing.

        The status check and the update are a single conditional UPDATE, so
        two concurrent runs can never both claim the same record.

        Returns:
            True if this call claimed the record, False if its status did not allow it

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        stmt = (
            update(GenerationRecordRow)
            .where(GenerationRecordRow.id == record_id)
            .where(GenerationRecordRow.status.in_(CLAIMABLE_STATUSES))
            .values(
                status=GenerationStatus.PROCESSING.value,
                generation_error=None,
                updated_at=datetime.utcnow(),
            )
        )
        try:
            with self.session_factory() as session:
                result = session.execute(stmt)
                session.commit()
                if result.rowcount == 1:
                    return True
                if session.get(GenerationRecordRow, record_id) is None:
                    raise RecordNotFoundError(record_id)
                return False
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to claim generation record {record_id}: {e}") from e

    def update_generation_status(
        self,
        record_id: str,
        status: GenerationStatus,
        program: Optional[TrainingProgram] = None,
        error: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        artifacts: Optional[PipelineArtifacts] = None,
    ) -> None:
        """
        Record a status change and whatever results accompany it.

        Args:
            record_id: Record to update
            status: New status
            program: Accepted program (completed runs only)
            error: Failure message; cleared for any other status
            metadata: Replaces the stored generation metadata when given
            artifacts: Landmarks, weak points, model name and AI model version

        Raises:
            RecordNotFoundError: If the record does not exist
            PersistenceError: If the write fails
        """
        try:
            with self.session_factory() as session:
                row = session.get(GenerationRecordRow, record_id)
                if row is None:
                    raise RecordNotFoundError(record_id)

                row.status = GenerationStatus(status).value
                row.generation_error = error if status == GenerationStatus.FAILED else None
                row.updated_at = datetime.utcnow()
                if program is not None:
                    row.program_details = program.model_dump(mode="json", by_alias=True)
                if metadata is not None:
                    row.generation_metadata = metadata
                if artifacts is not None:
                    row.volume_landmarks = {
                        group: landmark.model_dump(mode="json", by_alias=True)
                        for group, landmark in artifacts.volume_landmarks.items()
                    }
                    row.weak_point_analysis = (
                        artifacts.weak_point_analysis.model_dump(mode="json")
                        if artifacts.weak_point_analysis
                        else None
                    )
                    row.periodization_model = artifacts.periodization_model
                    row.ai_model_version = artifacts.ai_model_version
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update generation record {record_id}: {e}") from e

        logger.debug(f"Generation record {record_id} -> {GenerationStatus(status).value}")

    def get_generation_record(self, record_id: str) -> GenerationRecord:
        """
        Load a record.

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        try:
            with self.session_factory() as session:
                row = session.get(GenerationRecordRow, record_id)
                if row is None:
                    raise RecordNotFoundError(record_id)
                return self._to_record(row)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load generation record {record_id}: {e}") from e

    @staticmethod
    def _to_record(row: GenerationRecordRow) -> GenerationRecord:
        return GenerationRecord(
            id=row.id,
            user_id=row.user_id,
            status=GenerationStatus(row.status),
            profile_snapshot=UserProfile.model_validate(row.profile_snapshot),
            program=(
                TrainingProgram.model_validate(row.program_details)
                if row.program_details
                else None
            ),
            error=row.generation_error,
            metadata=row.generation_metadata or {},
            volume_landmarks=row.volume_landmarks or {},
            weak_point_analysis=row.weak_point_analysis,
            periodization_model=row.periodization_model,
            ai_model_version=row.ai_model_version,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


