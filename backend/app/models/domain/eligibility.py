"""Rule set, rule, program and poverty-level domain models."""

import uuid
from datetime import date
from typing import Any, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import ProgramCategory, RuleSetStatus
from app.db.base import BaseModel


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class RuleSetVersion(BaseModel):
    """Dated, immutable bundle of eligibility rules for one jurisdiction."""

    __tablename__ = "rule_set_versions"
    __table_args__ = (
        UniqueConstraint("jurisdiction_code", "version_label", name="uq_rule_set_version_label"),
        CheckConstraint(
            "end_date IS NULL OR effective_date <= end_date",
            name="ck_rule_set_version_dates",
        ),
    )

    jurisdiction_code: Mapped[str] = mapped_column(String(2), nullable=False, index=True)
    version_label: Mapped[str] = mapped_column(String(50), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[RuleSetStatus] = mapped_column(
        SQLEnum(
            RuleSetStatus,
            name="rule_set_status",
            values_callable=_enum_values,
        ),
        default=RuleSetStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    rules: Mapped[list["EligibilityRule"]] = relationship(
        "EligibilityRule",
        back_populates="rule_set_version",
        order_by="EligibilityRule.priority",
    )

    def __repr__(self) -> str:
        return (
            f"<RuleSetVersion(jurisdiction={self.jurisdiction_code!r}, "
            f"version={self.version_label!r}, status={self.status})>"
        )


class ProgramDefinition(BaseModel):
    """Assistance program offered in a jurisdiction."""

    __tablename__ = "program_definitions"
    __table_args__ = (
        UniqueConstraint("jurisdiction_code", "program_code", name="uq_program_code_per_jurisdiction"),
    )

    program_code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    jurisdiction_code: Mapped[str] = mapped_column(String(2), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[ProgramCategory] = mapped_column(
        SQLEnum(
            ProgramCategory,
            name="program_category",
            values_callable=_enum_values,
        ),
        default=ProgramCategory.OTHER,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ProgramDefinition(code={self.program_code!r}, name={self.name!r})>"


class EligibilityRule(BaseModel):
    """Declarative boolean rule tying a program to a rule set version."""

    __tablename__ = "eligibility_rules"

    rule_set_version_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("rule_set_versions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    program_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("program_definitions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    program_code: Mapped[str] = mapped_column(String(50), nullable=False)
    rule_expression: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    rule_set_version: Mapped["RuleSetVersion"] = relationship(
        "RuleSetVersion", back_populates="rules"
    )
    program: Mapped["ProgramDefinition"] = relationship("ProgramDefinition")

    def __repr__(self) -> str:
        return f"<EligibilityRule(id={self.id}, program={self.program_code!r}, priority={self.priority})>"


class FederalPovertyLevel(BaseModel):
    """Annual poverty guideline by year and household size."""

    __tablename__ = "federal_poverty_levels"
    __table_args__ = (
        UniqueConstraint(
            "year", "household_size", "jurisdiction_code", name="uq_fpl_year_size_jurisdiction"
        ),
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    household_size: Mapped[int] = mapped_column(Integer, nullable=False)
    annual_amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # Null means the baseline table used by every jurisdiction without its own row
    jurisdiction_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<FederalPovertyLevel(year={self.year}, size={self.household_size}, "
            f"jurisdiction={self.jurisdiction_code!r})>"
        )
