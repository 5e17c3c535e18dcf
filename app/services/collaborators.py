"""
External Collaborators - FoodEval Scoring Engine
app/services/collaborators.py

Rendering and notification hooks. The defaults only log; deployments plug in
a PDF renderer or a mail/SMS notifier behind the same interface.
"""

import logging
from typing import Optional

from app.models.document import VersionedDocument
from app.models.evaluation import ExpertEvaluation
from app.models.sample import ProductSample
from app.models.session import EvaluationSession

logger = logging.getLogger(__name__)


class DocumentRenderer:
    """Turns a Generated document into a distributable artifact."""

    def render(self, document: VersionedDocument) -> Optional[str]:
        """Return the artifact location, or None when nothing was produced."""
        logger.info(
            "document_render_skipped",
            extra={"document_id": str(document.id), "kind": document.kind.value},
        )
        return None


class Notifier:
    """Outbound notifications. Delivery mechanics live elsewhere."""

    def session_created(self, session: EvaluationSession) -> None:
        logger.info(
            "notify_session_created",
            extra={"session_id": str(session.id), "commission_id": str(session.commission_id)},
        )

    def evaluation_submitted(self, evaluation: ExpertEvaluation) -> None:
        logger.info(
            "notify_evaluation_submitted",
            extra={"evaluation_id": str(evaluation.id), "session_id": str(evaluation.session_id)},
        )

    def score_calculated(self, sample: ProductSample) -> None:
        logger.info(
            "notify_score_calculated",
            extra={"sample_id": str(sample.id), "final_score": str(sample.final_score)},
        )

    def document_sent(self, document: VersionedDocument) -> None:
        logger.info(
            "notify_document_sent",
            extra={
                "document_id": str(document.id),
                "applicant_id": str(document.applicant_id),
                "document_number": document.document_number,
                "version": document.version,
            },
        )
