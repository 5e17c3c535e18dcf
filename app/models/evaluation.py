"""
Expert evaluation models.

The score an evaluator records is a tagged variant selected by the sample's
evaluation mode: ``FinalScoreEntry`` carries one overall score,
``CriteriaEntry`` carries per-criterion scores. Consumers branch on the
concrete type, never on which optional fields happen to be set.
"""

from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Iterable, List, Literal, Optional, Union

from app.core.exceptions import (
    AlreadySubmitted,
    ExclusionReasonRequired,
    MissingFinalScore,
    MissingRequiredCriteria,
    ScoreOutOfRange,
    ValidationFailedError,
)
from app.models.criterion import EvaluationCriterion
from app.models.enumerations import EvaluationMode
from app.models.session import EvaluationSession


class CriterionEvaluation(BaseModel):
    """One criterion score inside a criteria-based evaluation."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    expert_evaluation_id: UUID
    criterion_id: UUID
    score: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    modified_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FinalScoreEntry(BaseModel):
    mode: Literal["final_score"] = "final_score"
    final_score: Optional[Decimal] = Field(default=None, ge=0)


class CriteriaEntry(BaseModel):
    mode: Literal["criteria_based"] = "criteria_based"
    criterion_evaluations: List[CriterionEvaluation] = Field(default_factory=list)


ScoreEntry = Annotated[Union[FinalScoreEntry, CriteriaEntry], Field(discriminator="mode")]


def empty_entry(mode: EvaluationMode) -> Union[FinalScoreEntry, CriteriaEntry]:
    if mode == EvaluationMode.FINAL_SCORE:
        return FinalScoreEntry()
    return CriteriaEntry()


class ExpertEvaluation(BaseModel):
    """
    One commission member's scoring record for one session.

    Unique per (session, commission member). Every mutation takes the parent
    session and fails with SessionNotActive once it left Active; a submitted
    evaluation is final.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    session_id: UUID
    product_sample_id: UUID
    commission_member_id: UUID
    entry: ScoreEntry
    is_sample_excluded_by_evaluator: bool = False
    exclusion_note: Optional[str] = None
    is_excluded_from_calculation: bool = False
    submitted_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    modified_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def mode(self) -> EvaluationMode:
        return EvaluationMode(self.entry.mode)

    @property
    def is_submitted(self) -> bool:
        return self.submitted_at is not None

    @property
    def counts_toward_score(self) -> bool:
        return self.is_submitted and not self.is_excluded_from_calculation

    def _touch(self) -> None:
        self.modified_at = datetime.now(timezone.utc)

    def ensure_mutable(self, session: EvaluationSession) -> None:
        session.ensure_active()
        if self.is_submitted:
            raise AlreadySubmitted(
                "Evaluation has already been submitted", {"evaluation_id": str(self.id)}
            )

    def set_final_score(self, session: EvaluationSession, score: Decimal) -> None:
        self.ensure_mutable(session)
        if not isinstance(self.entry, FinalScoreEntry):
            raise ValidationFailedError(
                "Sample is evaluated per criterion; a final score cannot be set",
                {"evaluation_id": str(self.id)},
            )
        if score < 0:
            raise ValidationFailedError(
                "Final score must not be negative", {"evaluation_id": str(self.id)}
            )
        self.entry.final_score = score
        self._touch()

    def set_criterion_score(
        self,
        session: EvaluationSession,
        criterion: EvaluationCriterion,
        score: int,
    ) -> CriterionEvaluation:
        """
        Create or replace the score for ``criterion``.

        Raises:
            ScoreOutOfRange: if ``score`` is outside the criterion's bounds
        """
        self.ensure_mutable(session)
        if not isinstance(self.entry, CriteriaEntry):
            raise ValidationFailedError(
                "Sample is evaluated by final score; criterion scores cannot be set",
                {"evaluation_id": str(self.id)},
            )
        if not criterion.is_valid_score(score):
            raise ScoreOutOfRange(
                f"Score {score} for '{criterion.name}' must be within "
                f"[{criterion.min_score}, {criterion.max_score}]",
                {
                    "criterion_id": str(criterion.id),
                    "score": score,
                    "min_score": criterion.min_score,
                    "max_score": criterion.max_score,
                },
            )

        existing = next(
            (ce for ce in self.entry.criterion_evaluations if ce.criterion_id == criterion.id),
            None,
        )
        if existing is not None:
            existing.score = score
            existing.modified_at = datetime.now(timezone.utc)
            result = existing
        else:
            result = CriterionEvaluation(
                expert_evaluation_id=self.id, criterion_id=criterion.id, score=score
            )
            self.entry.criterion_evaluations.append(result)
        self._touch()
        return result

    def set_exclusion_vote(
        self, session: EvaluationSession, exclude: bool, note: Optional[str] = None
    ) -> None:
        self.ensure_mutable(session)
        if exclude and (not note or not note.strip()):
            raise ExclusionReasonRequired(
                "Exclusion note is required when excluding a sample",
                {"evaluation_id": str(self.id)},
            )
        self.is_sample_excluded_by_evaluator = exclude
        self.exclusion_note = note.strip() if exclude else None
        self._touch()

    def submit(
        self,
        session: EvaluationSession,
        criteria: Iterable[EvaluationCriterion] = (),
    ) -> None:
        """
        Finalize the evaluation.

        Args:
            session: parent session, must be Active
            criteria: criteria applicable to the session's commission; only
                used in criteria-based mode to check required ones are scored
        """
        self.ensure_mutable(session)

        if isinstance(self.entry, FinalScoreEntry):
            if self.entry.final_score is None:
                raise MissingFinalScore(
                    "A final score is required before submitting",
                    {"evaluation_id": str(self.id)},
                )
        elif isinstance(self.entry, CriteriaEntry):
            if not self.entry.criterion_evaluations:
                raise MissingRequiredCriteria(
                    "At least one criterion must be scored before submitting",
                    {"evaluation_id": str(self.id)},
                )
            scored = {ce.criterion_id for ce in self.entry.criterion_evaluations}
            missing = [c for c in criteria if c.is_required and c.id not in scored]
            if missing:
                raise MissingRequiredCriteria(
                    "Required criteria are not scored: " + ", ".join(c.name for c in missing),
                    {"missing_criteria": [str(c.id) for c in missing]},
                )
        else:
            raise TypeError(f"Unknown evaluation entry: {type(self.entry).__name__}")

        self.submitted_at = datetime.now(timezone.utc)
        self._touch()


# =============================================================================
# REQUEST MODELS
# =============================================================================


class EvaluationCreate(BaseModel):
    session_id: UUID
    commission_member_id: UUID
    final_score: Optional[Decimal] = Field(default=None, ge=0)
    is_sample_excluded_by_evaluator: bool = False
    exclusion_note: Optional[str] = None


class EvaluationUpdate(BaseModel):
    final_score: Optional[Decimal] = Field(default=None, ge=0)
    is_sample_excluded_by_evaluator: Optional[bool] = None
    exclusion_note: Optional[str] = None


class CriterionScoreInput(BaseModel):
    criterion_id: UUID
    score: int


class ExclusionVoteInput(BaseModel):
    exclude: bool
    note: Optional[str] = None
