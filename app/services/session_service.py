"""
Session Service - FoodEval Scoring Engine
app/services/session_service.py

Activation, completion and cancellation of evaluation sessions.

Creation is a check-then-insert under the ``sample:<id>`` lock so that two
concurrent activations for the same sample cannot both observe "no active
session".

Complete and cancel run under ``session:<id>``, the same lock every
evaluation write takes, so no evaluation changes after a session leaves
Active and only one terminal transition wins.
"""

import logging
from typing import Callable, List, Optional
from uuid import UUID

from app.core.exceptions import (
    DuplicateEntityException,
    EntityNotFoundException,
    InvalidTransitionError,
    SessionAlreadyActive,
    ValidationFailedError,
)
from app.models.commission import Commission
from app.models.enumerations import SampleStatus
from app.models.sample import ProductSample
from app.models.session import EvaluationSession, SessionCreate
from app.repositories.gateway import EvaluationStore
from app.services.collaborators import Notifier
from app.services.locks import LockManager
from app.services.roster_validator import resolve_activator

logger = logging.getLogger(__name__)

EligibilityPredicate = Callable[[Commission, ProductSample], bool]


def any_commission(commission: Commission, sample: ProductSample) -> bool:
    return True


class SessionService:

    def __init__(
        self,
        store: EvaluationStore,
        locks: LockManager,
        notifier: Optional[Notifier] = None,
        is_eligible: EligibilityPredicate = any_commission,
    ):
        self.store = store
        self.locks = locks
        self.notifier = notifier or Notifier()
        self.is_eligible = is_eligible

    def get_session(self, session_id: UUID) -> EvaluationSession:
        session = self.store.get_session(session_id)
        if session is None:
            raise EntityNotFoundException("EvaluationSession", session_id)
        return session

    def list_sessions(self, sample_id: UUID) -> List[EvaluationSession]:
        return self.store.list_sessions(sample_id)

    def create_session(self, payload: SessionCreate, activated_by: UUID) -> EvaluationSession:
        """
        Activate ``payload.commission_id`` against ``payload.product_sample_id``.

        Raises:
            EntityNotFoundException: sample or commission missing
            ValidationFailedError: sample outside the event, commission not
                eligible, or user not allowed to activate
            InvalidTransitionError: sample is not Submitted
            SessionAlreadyActive: another session for the sample is Active
        """
        sample_id = payload.product_sample_id

        with self.locks.hold(f"sample:{sample_id}"):
            sample = self.store.get_sample(sample_id)
            if sample is None:
                raise EntityNotFoundException("ProductSample", sample_id)
            if sample.event_id != payload.event_id:
                raise ValidationFailedError(
                    "Sample does not belong to this evaluation event",
                    {"sample_id": str(sample_id), "event_id": str(payload.event_id)},
                )
            if sample.status != SampleStatus.SUBMITTED:
                raise InvalidTransitionError(
                    f"Cannot start a session for a {sample.status.value} sample",
                    {"sample_id": str(sample_id), "status": sample.status.value},
                )

            commission = self.store.get_commission(payload.commission_id)
            if commission is None:
                raise EntityNotFoundException("Commission", payload.commission_id)
            if not self.is_eligible(commission, sample):
                raise ValidationFailedError(
                    "Commission is not eligible to evaluate this sample",
                    {"commission_id": str(commission.id), "category_id": str(sample.category_id)},
                )
            resolve_activator(commission, activated_by)

            active = self.store.get_active_session(sample_id)
            if active is not None:
                raise SessionAlreadyActive(
                    "Sample already has an active evaluation session",
                    {"sample_id": str(sample_id), "session_id": str(active.id)},
                )

            session = EvaluationSession(
                event_id=payload.event_id,
                product_sample_id=sample_id,
                commission_id=commission.id,
                activated_by=activated_by,
            )
            try:
                self.store.insert_session(session)
            except DuplicateEntityException as e:
                raise SessionAlreadyActive(e.message, {"sample_id": str(sample_id)}) from e

        logger.info(
            "session_activated",
            extra={"session_id": str(session.id), "sample_id": str(sample_id),
                   "commission_id": str(commission.id), "activated_by": str(activated_by)},
        )
        self.notifier.session_created(session)
        return session

    def complete_session(self, session_id: UUID) -> EvaluationSession:
        with self.locks.hold(f"session:{session_id}"):
            session = self.get_session(session_id)
            session.complete()
            self.store.save_session(session)
        logger.info("session_completed", extra={"session_id": str(session_id)})
        return session

    def cancel_session(self, session_id: UUID) -> EvaluationSession:
        with self.locks.hold(f"session:{session_id}"):
            session = self.get_session(session_id)
            session.cancel()
            self.store.save_session(session)
        logger.info("session_cancelled", extra={"session_id": str(session_id)})
        return session
