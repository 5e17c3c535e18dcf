"""
Sample Service - FoodEval Scoring Engine
app/services/sample_service.py

Registration and forward transitions of product samples:

    register  → Draft (sequential number + unique code allocated)
    submit    → Submitted
    exclude   → Excluded (reason required, not from Completed)
    complete  → Completed (locks the final score)
"""

import logging
from uuid import UUID, uuid4

from app.core.exceptions import EntityNotFoundException
from app.models.enumerations import SampleStatus
from app.models.sample import ProductSample, SampleCreate
from app.repositories.gateway import EvaluationStore
from app.services.locks import LockManager

logger = logging.getLogger(__name__)


def sample_code(event_id: UUID, sequential_number: int) -> str:
    """``<EVENTPREFIX>-<NNNN>-<hex>``, e.g. ``3F2A91C0-0007-9B1E4D2A``."""
    prefix = event_id.hex[:8].upper()
    return f"{prefix}-{sequential_number:04d}-{uuid4().hex[:8].upper()}"


class SampleService:

    def __init__(self, store: EvaluationStore, locks: LockManager):
        self.store = store
        self.locks = locks

    def get_sample(self, sample_id: UUID) -> ProductSample:
        sample = self.store.get_sample(sample_id)
        if sample is None:
            raise EntityNotFoundException("ProductSample", sample_id)
        return sample

    def register_sample(self, payload: SampleCreate) -> ProductSample:
        with self.locks.hold(f"counter:sample:{payload.event_id}"):
            number = self.store.next_sequential_number(payload.event_id)
            sample = ProductSample(
                event_id=payload.event_id,
                applicant_id=payload.applicant_id,
                category_id=payload.category_id,
                sequential_number=number,
                code=sample_code(payload.event_id, number),
                name=payload.name,
                description=payload.description,
                evaluation_mode=payload.evaluation_mode,
            )
            self.store.insert_sample(sample)

        logger.info(
            "sample_registered",
            extra={"sample_id": str(sample.id), "event_id": str(sample.event_id),
                   "sequential_number": number, "code": sample.code},
        )
        return sample

    def submit_sample(self, sample_id: UUID) -> ProductSample:
        return self._transition(sample_id, SampleStatus.SUBMITTED)

    def complete_sample(self, sample_id: UUID) -> ProductSample:
        return self._transition(sample_id, SampleStatus.COMPLETED)

    def exclude_sample(self, sample_id: UUID, reason: str) -> ProductSample:
        with self.locks.hold(f"sample:{sample_id}"):
            sample = self.get_sample(sample_id)
            sample.exclude(reason)
            self.store.save_sample(sample)

        logger.info(
            "sample_excluded",
            extra={"sample_id": str(sample_id), "reason": sample.exclusion_reason},
        )
        return sample

    def _transition(self, sample_id: UUID, new_status: SampleStatus) -> ProductSample:
        with self.locks.hold(f"sample:{sample_id}"):
            sample = self.get_sample(sample_id)
            previous = sample.status
            sample.transition_to(new_status)
            self.store.save_sample(sample)

        logger.info(
            "sample_status_changed",
            extra={"sample_id": str(sample_id), "from": previous.value, "to": new_status.value},
        )
        return sample
