import uuid
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shared.core.database import Base
from ...enum.tenancy_enum import SagaStatus, SagaStepStatus, SagaType


class TenancySaga(Base):
    __tablename__ = "tenancy_sagas"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    saga_type = Column(Enum(SagaType, name="saga_type"), nullable=False)
    entity_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    actor_id = Column(String(64), nullable=True)

    # client supplied; a completed saga with the same key is not re-run
    idempotency_key = Column(String(128), nullable=True, unique=True)

    status = Column(Enum(SagaStatus, name="saga_status"),
                    nullable=False, default=SagaStatus.running)
    error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    steps = relationship(
        "TenancySagaStep",
        back_populates="saga",
        order_by="TenancySagaStep.sequence",
        cascade="all, delete-orphan",
    )


class TenancySagaStep(Base):
    __tablename__ = "tenancy_saga_steps"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    saga_id = Column(UUID(as_uuid=True), ForeignKey(
        "tenancy_sagas.id"), nullable=False, index=True)

    sequence = Column(Integer, nullable=False)
    step_name = Column(String(64), nullable=False)
    status = Column(Enum(SagaStepStatus, name="saga_step_status"), nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    saga = relationship("TenancySaga", back_populates="steps")
