"""Pydantic models for API request payloads."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from peptide_tracker.domain.cycles import (
    DailyFrequency,
    Frequency,
    MonthlyFrequency,
    NewCycle,
    WeeklyFrequency,
)
from peptide_tracker.domain.protocols import ProtocolPeptide, ProtocolTemplate


class FrequencyPayload(BaseModel):
    """Recurrence rule as submitted by a client."""

    type: Literal["daily", "weekly", "monthly"]
    times: int = Field(ge=1)
    days: list[str] = Field(default_factory=list)
    dates: list[int] = Field(default_factory=list)

    def to_frequency(self) -> Frequency:
        """Convert to the domain frequency union."""
        if self.type == "daily":
            return DailyFrequency(times_per_day=self.times)
        if self.type == "weekly":
            return WeeklyFrequency(
                times_per_week=self.times, days_of_week=tuple(self.days)
            )
        return MonthlyFrequency(
            times_per_month=self.times, dates_of_month=tuple(self.dates)
        )


class CreateCyclePayload(BaseModel):
    """Request body for creating a single cycle."""

    peptide_name: str = Field(min_length=1)
    dose_amount: str
    frequency: FrequencyPayload
    start_date: date
    duration_weeks: int = Field(default=8, ge=1, le=52)
    notes: str | None = None
    route: str | None = None

    def to_new_cycle(self) -> NewCycle:
        """Convert to the domain creation request."""
        return NewCycle(
            peptide_name=self.peptide_name,
            dose_amount=self.dose_amount,
            frequency=self.frequency.to_frequency(),
            start_date=self.start_date,
            duration_weeks=self.duration_weeks,
            notes=self.notes,
            route=self.route,
        )


class UpdateFrequencyPayload(BaseModel):
    """Request body for replacing a cycle's frequency."""

    frequency: FrequencyPayload


class ProtocolPeptidePayload(BaseModel):
    """One peptide entry of a protocol template."""

    name: str = Field(min_length=1)
    dose: str
    timing: str
    route: str | None = None


class ProtocolPayload(BaseModel):
    """Request body for batch-creating cycles from a protocol template."""

    id: str
    name: str
    duration: str
    peptides: list[ProtocolPeptidePayload] = Field(min_length=1)
    start_date: date | None = None

    def to_template(self) -> ProtocolTemplate:
        """Convert to the domain protocol template."""
        return ProtocolTemplate(
            id=self.id,
            name=self.name,
            duration=self.duration,
            peptides=[
                ProtocolPeptide(
                    name=peptide.name,
                    dose=peptide.dose,
                    timing=peptide.timing,
                    route=peptide.route,
                )
                for peptide in self.peptides
            ],
        )
