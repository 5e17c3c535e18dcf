"""
Evaluation Service - FoodEval Scoring Engine
app/services/evaluation_service.py

Expert evaluation capture for an active session.

- every write (create, update, criterion score, vote, submit) reloads the
  session and the evaluation under the ``session:<id>`` lock, shared with
  session complete/cancel
- one evaluation per (session, commission member)
- trainee evaluations are flagged excluded-from-calculation at creation
- after each submit the exclusion votes are tallied; strictly more than
  AUTO_EXCLUSION_RATIO of counted votes excludes the sample
"""

import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, List, Optional, Tuple
from uuid import UUID

from app.config import settings
from app.core.exceptions import (
    DuplicateEntityException,
    DuplicateEvaluation,
    EntityNotFoundException,
    MemberNotEligible,
)
from app.models.commission import CommissionMember
from app.models.criterion import EvaluationCriterion
from app.models.enumerations import CommissionMemberRole, SampleStatus
from app.models.evaluation import (
    CriterionEvaluation,
    CriterionScoreInput,
    EvaluationCreate,
    EvaluationUpdate,
    ExclusionVoteInput,
    ExpertEvaluation,
    empty_entry,
)
from app.models.session import EvaluationSession
from app.repositories.gateway import EvaluationStore
from app.services.collaborators import Notifier
from app.services.locks import LockManager

logger = logging.getLogger(__name__)


class EvaluationService:

    def __init__(
        self,
        store: EvaluationStore,
        locks: LockManager,
        notifier: Optional[Notifier] = None,
        exclude_trainees: Optional[bool] = None,
        auto_exclusion_ratio: Optional[float] = None,
    ):
        self.store = store
        self.locks = locks
        self.notifier = notifier or Notifier()
        self.exclude_trainees = (
            settings.EXCLUDE_TRAINEES_FROM_CALCULATION if exclude_trainees is None else exclude_trainees
        )
        self.auto_exclusion_ratio = Decimal(str(
            settings.AUTO_EXCLUSION_RATIO if auto_exclusion_ratio is None else auto_exclusion_ratio
        ))

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_evaluation(self, evaluation_id: UUID) -> ExpertEvaluation:
        evaluation = self.store.get_evaluation(evaluation_id)
        if evaluation is None:
            raise EntityNotFoundException("ExpertEvaluation", evaluation_id)
        return evaluation

    def list_evaluations(self, session_id: UUID) -> List[ExpertEvaluation]:
        return self.store.list_evaluations(session_id)

    def _session(self, session_id: UUID) -> EvaluationSession:
        session = self.store.get_session(session_id)
        if session is None:
            raise EntityNotFoundException("EvaluationSession", session_id)
        return session

    def _member(self, session: EvaluationSession, member_id: UUID) -> CommissionMember:
        commission = self.store.get_commission(session.commission_id)
        if commission is None:
            raise EntityNotFoundException("Commission", session.commission_id)
        member = commission.get_member(member_id)
        if member is None:
            raise MemberNotEligible(
                "Commission member does not belong to this session's commission",
                {"commission_member_id": str(member_id), "commission_id": str(commission.id)},
            )
        if not member.can_submit_evaluation():
            raise MemberNotEligible(
                "Excluded commission members cannot submit evaluations",
                {"commission_member_id": str(member_id)},
            )
        return member

    @contextmanager
    def _editing(self, evaluation_id: UUID) -> Iterator[Tuple[ExpertEvaluation, EvaluationSession]]:
        """Fresh (evaluation, session) pair, held under the session lock."""
        session_id = self.get_evaluation(evaluation_id).session_id
        with self.locks.hold(f"session:{session_id}"):
            evaluation = self.get_evaluation(evaluation_id)
            yield evaluation, self._session(session_id)

    # =========================================================================
    # CAPTURE
    # =========================================================================

    def create_evaluation(self, payload: EvaluationCreate) -> ExpertEvaluation:
        """
        Open the evaluation of one member for one session.

        Raises:
            SessionNotActive: session is Completed or Cancelled
            MemberNotEligible: member not on the commission, or excluded
            DuplicateEvaluation: the member already has an evaluation here
        """
        self._session(payload.session_id)  # unknown sessions fail before locking

        with self.locks.hold(f"session:{payload.session_id}"):
            session = self._session(payload.session_id)
            session.ensure_active()
            member = self._member(session, payload.commission_member_id)

            sample = self.store.get_sample(session.product_sample_id)
            if sample is None:
                raise EntityNotFoundException("ProductSample", session.product_sample_id)

            if self.store.find_evaluation(session.id, member.id) is not None:
                raise DuplicateEvaluation(
                    "Evaluation already exists for this member and session",
                    {"session_id": str(session.id), "commission_member_id": str(member.id)},
                )

            evaluation = ExpertEvaluation(
                session_id=session.id,
                product_sample_id=sample.id,
                commission_member_id=member.id,
                entry=empty_entry(sample.evaluation_mode),
                is_excluded_from_calculation=(
                    self.exclude_trainees and member.role == CommissionMemberRole.TRAINEE
                ),
            )
            if payload.final_score is not None:
                evaluation.set_final_score(session, payload.final_score)
            if payload.is_sample_excluded_by_evaluator:
                evaluation.set_exclusion_vote(session, True, payload.exclusion_note)

            try:
                self.store.insert_evaluation(evaluation)
            except DuplicateEntityException as e:
                raise DuplicateEvaluation(e.message, {"session_id": str(session.id)}) from e

        logger.info(
            "evaluation_created",
            extra={"evaluation_id": str(evaluation.id), "session_id": str(session.id),
                   "commission_member_id": str(member.id), "mode": evaluation.mode.value},
        )
        return evaluation

    def update_evaluation(self, evaluation_id: UUID, payload: EvaluationUpdate) -> ExpertEvaluation:
        with self._editing(evaluation_id) as (evaluation, session):
            evaluation.ensure_mutable(session)

            if payload.final_score is not None:
                evaluation.set_final_score(session, payload.final_score)
            if payload.is_sample_excluded_by_evaluator is not None:
                evaluation.set_exclusion_vote(
                    session, payload.is_sample_excluded_by_evaluator, payload.exclusion_note
                )

            self.store.save_evaluation(evaluation)
        return evaluation

    def set_criterion_score(
        self, evaluation_id: UUID, payload: CriterionScoreInput
    ) -> CriterionEvaluation:
        with self._editing(evaluation_id) as (evaluation, session):
            criterion = self._criterion(session, payload.criterion_id)
            result = evaluation.set_criterion_score(session, criterion, payload.score)
            self.store.save_evaluation(evaluation)
        return result

    def set_exclusion_vote(self, evaluation_id: UUID, payload: ExclusionVoteInput) -> ExpertEvaluation:
        with self._editing(evaluation_id) as (evaluation, session):
            evaluation.set_exclusion_vote(session, payload.exclude, payload.note)
            self.store.save_evaluation(evaluation)
        return evaluation

    def submit_evaluation(self, evaluation_id: UUID) -> ExpertEvaluation:
        """
        Finalize an evaluation, then tally exclusion votes for the sample.

        Raises:
            SessionNotActive: session left Active
            AlreadySubmitted: evaluation was submitted before
            MemberNotEligible: member was excluded after creating it
            MissingFinalScore / MissingRequiredCriteria: entry incomplete
        """
        with self._editing(evaluation_id) as (evaluation, session):
            evaluation.ensure_mutable(session)
            self._member(session, evaluation.commission_member_id)

            criteria = self.store.list_criteria(session.event_id, session.commission_id)
            evaluation.submit(session, criteria)
            self.store.save_evaluation(evaluation)

        logger.info(
            "evaluation_submitted",
            extra={"evaluation_id": str(evaluation.id), "session_id": str(session.id),
                   "excluded_from_calculation": evaluation.is_excluded_from_calculation,
                   "exclusion_vote": evaluation.is_sample_excluded_by_evaluator},
        )
        self.notifier.evaluation_submitted(evaluation)

        self._check_auto_exclusion(evaluation.product_sample_id)
        return evaluation

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _criterion(self, session: EvaluationSession, criterion_id: UUID) -> EvaluationCriterion:
        for criterion in self.store.list_criteria(session.event_id, session.commission_id):
            if criterion.id == criterion_id:
                return criterion
        raise EntityNotFoundException("EvaluationCriterion", criterion_id)

    def _check_auto_exclusion(self, sample_id: UUID) -> None:
        with self.locks.hold(f"sample:{sample_id}"):
            sample = self.store.get_sample(sample_id)
            if sample is None or sample.status != SampleStatus.SUBMITTED:
                return

            session = self.store.get_active_session(sample_id)
            if session is None:
                return

            counted = [e for e in self.store.list_evaluations(session.id) if e.counts_toward_score]
            if not counted:
                return

            votes = [e for e in counted if e.is_sample_excluded_by_evaluator]
            if Decimal(len(votes)) <= Decimal(len(counted)) * self.auto_exclusion_ratio:
                return

            reason = "; ".join(e.exclusion_note for e in votes if e.exclusion_note)
            sample.exclude(reason)
            self.store.save_sample(sample)

        logger.info(
            "sample_auto_excluded",
            extra={"sample_id": str(sample_id), "session_id": str(session.id),
                   "exclusion_votes": len(votes), "counted_votes": len(counted)},
        )
