"""Pydantic schemas for moderation results."""

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from red_tea.services.moderation import CascadeReport


class CascadeStepResponse(BaseModel):
    """Outcome of one cascade step."""

    name: str = Field(description="Step name")
    status: str = Field(description="succeeded, failed or skipped")
    required: bool = Field(description="Whether failure of this step aborts the cascade")
    error: str | None = Field(default=None, description="Error message if the step failed")


class CascadeReportResponse(BaseModel):
    """Aggregate result of a multi-step deletion."""

    name: str = Field(description="Cascade name")
    ok: bool = Field(description="True unless a required step failed")
    steps: list[CascadeStepResponse] = Field(default_factory=list, description="Step outcomes")

    @classmethod
    def from_report(cls, report: "CascadeReport") -> "CascadeReportResponse":
        return cls(
            name=report.name,
            ok=report.ok,
            steps=[
                CascadeStepResponse(
                    name=o.name, status=o.status, required=o.required, error=o.error
                )
                for o in report.outcomes
            ],
        )
