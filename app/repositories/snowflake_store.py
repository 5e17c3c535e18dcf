"""
Snowflake Store - FoodEval Scoring Engine
app/repositories/snowflake_store.py

EvaluationStore over Snowflake tables.

Snowflake does not enforce UNIQUE constraints, so every ``insert_*`` checks
the natural key first. Callers run these under a LockManager lock for the
same key.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from app.core.exceptions import DuplicateEntityException, RepositoryException
from app.models.commission import Commission, CommissionMember
from app.models.criterion import EvaluationCriterion, ScoringPolicy
from app.models.document import DOCUMENT_CLASSES, VersionedDocument
from app.models.enumerations import (
    CommissionMemberRole,
    CommissionStatus,
    DocumentKind,
    DocumentStatus,
    EvaluationMode,
    SampleStatus,
    SessionStatus,
)
from app.models.evaluation import (
    CriteriaEntry,
    CriterionEvaluation,
    ExpertEvaluation,
    FinalScoreEntry,
)
from app.models.sample import ProductSample
from app.models.session import EvaluationSession
from app.repositories.base import BaseRepository
from app.repositories.gateway import EvaluationStore


SAMPLE_COLUMNS = """
    ID, EVENT_ID, APPLICANT_ID, CATEGORY_ID, SEQUENTIAL_NUMBER, CODE, NAME,
    DESCRIPTION, EVALUATION_MODE, STATUS, EXCLUSION_REASON, EXCLUDED_AT,
    FINAL_SCORE, CREATED_AT, SUBMITTED_AT, EVALUATED_AT, COMPLETED_AT
"""

SESSION_COLUMNS = """
    ID, EVENT_ID, PRODUCT_SAMPLE_ID, COMMISSION_ID, ACTIVATED_BY, STATUS,
    ACTIVATED_AT, COMPLETED_AT
"""

EVALUATION_COLUMNS = """
    ID, SESSION_ID, PRODUCT_SAMPLE_ID, COMMISSION_MEMBER_ID, EVALUATION_MODE,
    FINAL_SCORE, IS_SAMPLE_EXCLUDED_BY_EVALUATOR, EXCLUSION_NOTE,
    IS_EXCLUDED_FROM_CALCULATION, SUBMITTED_AT, CREATED_AT, MODIFIED_AT
"""

CRITERION_COLUMNS = """
    ID, EVENT_ID, COMMISSION_ID, NAME, DESCRIPTION, WEIGHT, DISPLAY_ORDER,
    MIN_SCORE, MAX_SCORE, IS_REQUIRED, CREATED_AT
"""

DOCUMENT_COLUMNS = """
    ID, KIND, EVENT_ID, PRODUCT_SAMPLE_ID, APPLICANT_ID, DOCUMENT_NUMBER,
    VERSION, PREVIOUS_VERSION_ID, FINAL_SCORE, STATUS, GENERATED_AT, SENT_AT,
    ACKNOWLEDGED_AT, ARTIFACT_PATH, VERSION_CREATED_BY, VERSION_CREATED_AT
"""


class SnowflakeEvaluationStore(BaseRepository, EvaluationStore):
    """Snowflake-backed persistence gateway."""

    # =========================================================================
    # SAMPLES
    # =========================================================================

    def get_sample(self, sample_id: UUID) -> Optional[ProductSample]:
        sql = f"SELECT {SAMPLE_COLUMNS} FROM PRODUCT_SAMPLES WHERE ID = %s"
        row = self.execute_query(sql, (str(sample_id),), fetch_one=True)
        return self._sample_from_row(row) if row else None

    def list_samples(self, event_id: UUID) -> List[ProductSample]:
        sql = f"""
            SELECT {SAMPLE_COLUMNS} FROM PRODUCT_SAMPLES
            WHERE EVENT_ID = %s
            ORDER BY SEQUENTIAL_NUMBER
        """
        rows = self.execute_query(sql, (str(event_id),), fetch_all=True) or []
        return [self._sample_from_row(row) for row in rows]

    def insert_sample(self, sample: ProductSample) -> ProductSample:
        sql = """
            SELECT 1 FROM PRODUCT_SAMPLES
            WHERE ID = %s OR CODE = %s OR (EVENT_ID = %s AND SEQUENTIAL_NUMBER = %s)
        """
        params = (str(sample.id), sample.code, str(sample.event_id), sample.sequential_number)
        if self.execute_query(sql, params, fetch_one=True):
            raise DuplicateEntityException(
                f"Sample {sample.code} / #{sample.sequential_number} already exists"
            )
        sql, params = self.build_insert_query("PRODUCT_SAMPLES", self._sample_to_row(sample))
        self.execute_query(sql, tuple(params), commit=True)
        return sample

    def save_sample(self, sample: ProductSample) -> ProductSample:
        sql, params = self.build_merge_query("PRODUCT_SAMPLES", self._sample_to_row(sample))
        self.execute_query(sql, tuple(params), commit=True)
        return sample

    def next_sequential_number(self, event_id: UUID) -> int:
        sql = """
            SELECT COALESCE(MAX(SEQUENTIAL_NUMBER), 0) + 1 AS NEXT_NUMBER
            FROM PRODUCT_SAMPLES WHERE EVENT_ID = %s
        """
        row = self.execute_query(sql, (str(event_id),), fetch_one=True)
        return int(row["NEXT_NUMBER"]) if row else 1

    def _sample_to_row(self, sample: ProductSample) -> Dict[str, Any]:
        return {
            "id": str(sample.id),
            "event_id": str(sample.event_id),
            "applicant_id": str(sample.applicant_id),
            "category_id": str(sample.category_id),
            "sequential_number": sample.sequential_number,
            "code": sample.code,
            "name": sample.name,
            "description": sample.description,
            "evaluation_mode": sample.evaluation_mode.value,
            "status": sample.status.value,
            "exclusion_reason": sample.exclusion_reason,
            "excluded_at": sample.excluded_at,
            "final_score": sample.final_score,
            "created_at": sample.created_at,
            "submitted_at": sample.submitted_at,
            "evaluated_at": sample.evaluated_at,
            "completed_at": sample.completed_at,
        }

    def _sample_from_row(self, row: Dict[str, Any]) -> ProductSample:
        r = self.row_to_dict(row)
        return ProductSample(
            id=UUID(r["id"]),
            event_id=UUID(r["event_id"]),
            applicant_id=UUID(r["applicant_id"]),
            category_id=UUID(r["category_id"]),
            sequential_number=r["sequential_number"],
            code=r["code"],
            name=r["name"] or "",
            description=r["description"],
            evaluation_mode=EvaluationMode(r["evaluation_mode"]),
            status=SampleStatus(r["status"]),
            exclusion_reason=r["exclusion_reason"],
            excluded_at=self.normalize_timestamp(r["excluded_at"]),
            final_score=self.to_decimal(r["final_score"]),
            created_at=self.normalize_timestamp(r["created_at"]),
            submitted_at=self.normalize_timestamp(r["submitted_at"]),
            evaluated_at=self.normalize_timestamp(r["evaluated_at"]),
            completed_at=self.normalize_timestamp(r["completed_at"]),
        )

    # =========================================================================
    # COMMISSIONS
    # =========================================================================

    def get_commission(self, commission_id: UUID) -> Optional[Commission]:
        sql = """
            SELECT ID, NAME, DESCRIPTION, CATEGORY_ID, STATUS, CREATED_AT
            FROM COMMISSIONS WHERE ID = %s
        """
        row = self.execute_query(sql, (str(commission_id),), fetch_one=True)
        if not row:
            return None

        members_sql = """
            SELECT ID, COMMISSION_ID, USER_ID, ROLE, IS_EXCLUDED,
                   EXCLUSION_REASON, EXCLUDED_AT, JOINED_AT
            FROM COMMISSION_MEMBERS
            WHERE COMMISSION_ID = %s
            ORDER BY JOINED_AT
        """
        member_rows = self.execute_query(members_sql, (str(commission_id),), fetch_all=True) or []

        r = self.row_to_dict(row)
        return Commission(
            id=UUID(r["id"]),
            name=r["name"],
            description=r["description"],
            category_id=self.str_to_uuid(r["category_id"]),
            status=CommissionStatus(r["status"]),
            created_at=self.normalize_timestamp(r["created_at"]),
            members=[self._member_from_row(m) for m in member_rows],
        )

    def save_commission(self, commission: Commission) -> Commission:
        sql, params = self.build_merge_query("COMMISSIONS", {
            "id": str(commission.id),
            "name": commission.name,
            "description": commission.description,
            "category_id": self.uuid_to_str(commission.category_id),
            "status": commission.status.value,
            "created_at": commission.created_at,
        })
        statements = [
            (sql, tuple(params)),
            ("DELETE FROM COMMISSION_MEMBERS WHERE COMMISSION_ID = %s", (str(commission.id),)),
        ]
        for member in commission.members:
            member_sql, member_params = self.build_insert_query("COMMISSION_MEMBERS", {
                "id": str(member.id),
                "commission_id": str(commission.id),
                "user_id": str(member.user_id),
                "role": member.role.value,
                "is_excluded": member.is_excluded,
                "exclusion_reason": member.exclusion_reason,
                "excluded_at": member.excluded_at,
                "joined_at": member.joined_at,
            })
            statements.append((member_sql, tuple(member_params)))
        self.execute_many(statements)
        return commission

    def _member_from_row(self, row: Dict[str, Any]) -> CommissionMember:
        r = self.row_to_dict(row)
        return CommissionMember(
            id=UUID(r["id"]),
            commission_id=UUID(r["commission_id"]),
            user_id=UUID(r["user_id"]),
            role=CommissionMemberRole(r["role"]),
            is_excluded=bool(r["is_excluded"]),
            exclusion_reason=r["exclusion_reason"],
            excluded_at=self.normalize_timestamp(r["excluded_at"]),
            joined_at=self.normalize_timestamp(r["joined_at"]),
        )

    # =========================================================================
    # SESSIONS
    # =========================================================================

    def get_session(self, session_id: UUID) -> Optional[EvaluationSession]:
        sql = f"SELECT {SESSION_COLUMNS} FROM EVALUATION_SESSIONS WHERE ID = %s"
        row = self.execute_query(sql, (str(session_id),), fetch_one=True)
        return self._session_from_row(row) if row else None

    def get_active_session(self, sample_id: UUID) -> Optional[EvaluationSession]:
        sql = f"""
            SELECT {SESSION_COLUMNS} FROM EVALUATION_SESSIONS
            WHERE PRODUCT_SAMPLE_ID = %s AND STATUS = %s
            LIMIT 1
        """
        row = self.execute_query(
            sql, (str(sample_id), SessionStatus.ACTIVE.value), fetch_one=True
        )
        return self._session_from_row(row) if row else None

    def list_sessions(self, sample_id: UUID) -> List[EvaluationSession]:
        sql = f"""
            SELECT {SESSION_COLUMNS} FROM EVALUATION_SESSIONS
            WHERE PRODUCT_SAMPLE_ID = %s
            ORDER BY ACTIVATED_AT
        """
        rows = self.execute_query(sql, (str(sample_id),), fetch_all=True) or []
        return [self._session_from_row(row) for row in rows]

    def insert_session(self, session: EvaluationSession) -> EvaluationSession:
        if session.status == SessionStatus.ACTIVE and self.get_active_session(session.product_sample_id):
            raise DuplicateEntityException(
                f"Sample {session.product_sample_id} already has an active session"
            )
        sql, params = self.build_insert_query("EVALUATION_SESSIONS", self._session_to_row(session))
        self.execute_query(sql, tuple(params), commit=True)
        return session

    def save_session(self, session: EvaluationSession) -> EvaluationSession:
        sql, params = self.build_merge_query("EVALUATION_SESSIONS", self._session_to_row(session))
        self.execute_query(sql, tuple(params), commit=True)
        return session

    def _session_to_row(self, session: EvaluationSession) -> Dict[str, Any]:
        return {
            "id": str(session.id),
            "event_id": str(session.event_id),
            "product_sample_id": str(session.product_sample_id),
            "commission_id": str(session.commission_id),
            "activated_by": str(session.activated_by),
            "status": session.status.value,
            "activated_at": session.activated_at,
            "completed_at": session.completed_at,
        }

    def _session_from_row(self, row: Dict[str, Any]) -> EvaluationSession:
        r = self.row_to_dict(row)
        return EvaluationSession(
            id=UUID(r["id"]),
            event_id=UUID(r["event_id"]),
            product_sample_id=UUID(r["product_sample_id"]),
            commission_id=UUID(r["commission_id"]),
            activated_by=UUID(r["activated_by"]),
            status=SessionStatus(r["status"]),
            activated_at=self.normalize_timestamp(r["activated_at"]),
            completed_at=self.normalize_timestamp(r["completed_at"]),
        )

    # =========================================================================
    # EXPERT EVALUATIONS
    # =========================================================================

    def get_evaluation(self, evaluation_id: UUID) -> Optional[ExpertEvaluation]:
        sql = f"SELECT {EVALUATION_COLUMNS} FROM EXPERT_EVALUATIONS WHERE ID = %s"
        row = self.execute_query(sql, (str(evaluation_id),), fetch_one=True)
        return self._evaluation_from_row(row) if row else None

    def find_evaluation(
        self, session_id: UUID, commission_member_id: UUID
    ) -> Optional[ExpertEvaluation]:
        sql = f"""
            SELECT {EVALUATION_COLUMNS} FROM EXPERT_EVALUATIONS
            WHERE SESSION_ID = %s AND COMMISSION_MEMBER_ID = %s
        """
        row = self.execute_query(
            sql, (str(session_id), str(commission_member_id)), fetch_one=True
        )
        return self._evaluation_from_row(row) if row else None

    def list_evaluations(self, session_id: UUID) -> List[ExpertEvaluation]:
        sql = f"""
            SELECT {EVALUATION_COLUMNS} FROM EXPERT_EVALUATIONS
            WHERE SESSION_ID = %s
            ORDER BY CREATED_AT
        """
        rows = self.execute_query(sql, (str(session_id),), fetch_all=True) or []
        return [self._evaluation_from_row(row) for row in rows]

    def insert_evaluation(self, evaluation: ExpertEvaluation) -> ExpertEvaluation:
        if self.find_evaluation(evaluation.session_id, evaluation.commission_member_id):
            raise DuplicateEntityException("Evaluation already exists for this member and session")
        self.execute_many(self._evaluation_statements(evaluation, upsert=False))
        return evaluation

    def save_evaluation(self, evaluation: ExpertEvaluation) -> ExpertEvaluation:
        self.execute_many(self._evaluation_statements(evaluation, upsert=True))
        return evaluation

    def _evaluation_statements(self, evaluation: ExpertEvaluation, upsert: bool) -> List[tuple]:
        entry = evaluation.entry
        row = {
            "id": str(evaluation.id),
            "session_id": str(evaluation.session_id),
            "product_sample_id": str(evaluation.product_sample_id),
            "commission_member_id": str(evaluation.commission_member_id),
            "evaluation_mode": evaluation.mode.value,
            "final_score": entry.final_score if isinstance(entry, FinalScoreEntry) else None,
            "is_sample_excluded_by_evaluator": evaluation.is_sample_excluded_by_evaluator,
            "exclusion_note": evaluation.exclusion_note,
            "is_excluded_from_calculation": evaluation.is_excluded_from_calculation,
            "submitted_at": evaluation.submitted_at,
            "created_at": evaluation.created_at,
            "modified_at": evaluation.modified_at,
        }
        if upsert:
            sql, params = self.build_merge_query("EXPERT_EVALUATIONS", row)
        else:
            sql, params = self.build_insert_query("EXPERT_EVALUATIONS", row)

        statements = [
            (sql, tuple(params)),
            ("DELETE FROM CRITERION_EVALUATIONS WHERE EXPERT_EVALUATION_ID = %s",
             (str(evaluation.id),)),
        ]
        if isinstance(entry, CriteriaEntry):
            for ce in entry.criterion_evaluations:
                ce_sql, ce_params = self.build_insert_query("CRITERION_EVALUATIONS", {
                    "id": str(ce.id),
                    "expert_evaluation_id": str(evaluation.id),
                    "criterion_id": str(ce.criterion_id),
                    "score": ce.score,
                    "created_at": ce.created_at,
                    "modified_at": ce.modified_at,
                })
                statements.append((ce_sql, tuple(ce_params)))
        return statements

    def _evaluation_from_row(self, row: Dict[str, Any]) -> ExpertEvaluation:
        r = self.row_to_dict(row)
        mode = EvaluationMode(r["evaluation_mode"])
        if mode == EvaluationMode.FINAL_SCORE:
            entry = FinalScoreEntry(final_score=self.to_decimal(r["final_score"]))
        else:
            sql = """
                SELECT ID, EXPERT_EVALUATION_ID, CRITERION_ID, SCORE, CREATED_AT, MODIFIED_AT
                FROM CRITERION_EVALUATIONS
                WHERE EXPERT_EVALUATION_ID = %s
                ORDER BY CREATED_AT
            """
            ce_rows = self.execute_query(sql, (r["id"],), fetch_all=True) or []
            entry = CriteriaEntry(criterion_evaluations=[
                CriterionEvaluation(
                    id=UUID(ce["ID"]),
                    expert_evaluation_id=UUID(ce["EXPERT_EVALUATION_ID"]),
                    criterion_id=UUID(ce["CRITERION_ID"]),
                    score=int(ce["SCORE"]),
                    created_at=self.normalize_timestamp(ce["CREATED_AT"]),
                    modified_at=self.normalize_timestamp(ce["MODIFIED_AT"]),
                )
                for ce in ce_rows
            ])

        return ExpertEvaluation(
            id=UUID(r["id"]),
            session_id=UUID(r["session_id"]),
            product_sample_id=UUID(r["product_sample_id"]),
            commission_member_id=UUID(r["commission_member_id"]),
            entry=entry,
            is_sample_excluded_by_evaluator=bool(r["is_sample_excluded_by_evaluator"]),
            exclusion_note=r["exclusion_note"],
            is_excluded_from_calculation=bool(r["is_excluded_from_calculation"]),
            submitted_at=self.normalize_timestamp(r["submitted_at"]),
            created_at=self.normalize_timestamp(r["created_at"]),
            modified_at=self.normalize_timestamp(r["modified_at"]),
        )

    # =========================================================================
    # CRITERIA & POLICY
    # =========================================================================

    def list_criteria(
        self, event_id: UUID, commission_id: Optional[UUID] = None
    ) -> List[EvaluationCriterion]:
        sql = f"SELECT {CRITERION_COLUMNS} FROM EVALUATION_CRITERIA WHERE EVENT_ID = %s"
        params: List[Any] = [str(event_id)]
        if commission_id is not None:
            sql += " AND (COMMISSION_ID IS NULL OR COMMISSION_ID = %s)"
            params.append(str(commission_id))
        sql += " ORDER BY DISPLAY_ORDER, NAME"

        rows = self.execute_query(sql, tuple(params), fetch_all=True) or []
        criteria = []
        for row in rows:
            r = self.row_to_dict(row)
            criteria.append(EvaluationCriterion(
                id=UUID(r["id"]),
                event_id=UUID(r["event_id"]),
                commission_id=self.str_to_uuid(r["commission_id"]),
                name=r["name"],
                description=r["description"],
                weight=self.to_decimal(r["weight"]),
                display_order=r["display_order"] or 0,
                min_score=int(r["min_score"]),
                max_score=int(r["max_score"]),
                is_required=bool(r["is_required"]),
                created_at=self.normalize_timestamp(r["created_at"]),
            ))
        return criteria

    def save_criterion(self, criterion: EvaluationCriterion) -> EvaluationCriterion:
        sql, params = self.build_merge_query("EVALUATION_CRITERIA", {
            "id": str(criterion.id),
            "event_id": str(criterion.event_id),
            "commission_id": self.uuid_to_str(criterion.commission_id),
            "name": criterion.name,
            "description": criterion.description,
            "weight": criterion.weight,
            "display_order": criterion.display_order,
            "min_score": criterion.min_score,
            "max_score": criterion.max_score,
            "is_required": criterion.is_required,
            "created_at": criterion.created_at,
        })
        self.execute_query(sql, tuple(params), commit=True)
        return criterion

    def get_policy(self, event_id: UUID) -> Optional[ScoringPolicy]:
        sql = """
            SELECT ID, EVENT_ID, TRIM_HIGH_LOW_FROM_COUNT, TRIM_COUNT_HIGH,
                   TRIM_COUNT_LOW, ROUNDING_DECIMALS, CREATED_AT, MODIFIED_AT
            FROM SCORING_POLICIES WHERE EVENT_ID = %s
        """
        row = self.execute_query(sql, (str(event_id),), fetch_one=True)
        if not row:
            return None
        r = self.row_to_dict(row)
        return ScoringPolicy(
            id=UUID(r["id"]),
            event_id=UUID(r["event_id"]),
            trim_high_low_from_count=r["trim_high_low_from_count"],
            trim_count_high=r["trim_count_high"],
            trim_count_low=r["trim_count_low"],
            rounding_decimals=r["rounding_decimals"],
            created_at=self.normalize_timestamp(r["created_at"]),
            modified_at=self.normalize_timestamp(r["modified_at"]),
        )

    def save_policy(self, policy: ScoringPolicy) -> ScoringPolicy:
        # One policy per event: EVENT_ID is the merge key.
        sql, params = self.build_merge_query("SCORING_POLICIES", {
            "event_id": str(policy.event_id),
            "id": str(policy.id),
            "trim_high_low_from_count": policy.trim_high_low_from_count,
            "trim_count_high": policy.trim_count_high,
            "trim_count_low": policy.trim_count_low,
            "rounding_decimals": policy.rounding_decimals,
            "created_at": policy.created_at,
            "modified_at": policy.modified_at,
        }, key_column="event_id")
        self.execute_query(sql, tuple(params), commit=True)
        return policy

    # =========================================================================
    # VERSIONED DOCUMENTS
    # =========================================================================

    def get_document(self, document_id: UUID) -> Optional[VersionedDocument]:
        sql = f"SELECT {DOCUMENT_COLUMNS} FROM RESULT_DOCUMENTS WHERE ID = %s"
        row = self.execute_query(sql, (str(document_id),), fetch_one=True)
        return self._document_from_row(row) if row else None

    def list_document_versions(
        self, event_id: UUID, kind: DocumentKind, document_number: int
    ) -> List[VersionedDocument]:
        sql = f"""
            SELECT {DOCUMENT_COLUMNS} FROM RESULT_DOCUMENTS
            WHERE EVENT_ID = %s AND KIND = %s AND DOCUMENT_NUMBER = %s
            ORDER BY VERSION
        """
        rows = self.execute_query(
            sql, (str(event_id), kind.value, document_number), fetch_all=True
        ) or []
        return [self._document_from_row(row) for row in rows]

    def list_documents_for_sample(self, sample_id: UUID) -> List[VersionedDocument]:
        sql = f"""
            SELECT {DOCUMENT_COLUMNS} FROM RESULT_DOCUMENTS
            WHERE PRODUCT_SAMPLE_ID = %s
            ORDER BY KIND, DOCUMENT_NUMBER, VERSION
        """
        rows = self.execute_query(sql, (str(sample_id),), fetch_all=True) or []
        return [self._document_from_row(row) for row in rows]

    def insert_document(self, document: VersionedDocument) -> VersionedDocument:
        sql = """
            SELECT 1 FROM RESULT_DOCUMENTS
            WHERE ID = %s
               OR (EVENT_ID = %s AND KIND = %s AND DOCUMENT_NUMBER = %s AND VERSION = %s)
        """
        params = (
            str(document.id), str(document.event_id), document.kind.value,
            document.document_number, document.version,
        )
        if self.execute_query(sql, params, fetch_one=True):
            raise DuplicateEntityException(
                f"{document.kind.value} {document.document_number} "
                f"version {document.version} already exists"
            )
        sql, insert_params = self.build_insert_query("RESULT_DOCUMENTS", {
            "id": str(document.id),
            "kind": document.kind.value,
            "event_id": str(document.event_id),
            "product_sample_id": str(document.product_sample_id),
            "applicant_id": str(document.applicant_id),
            "document_number": document.document_number,
            "version": document.version,
            "previous_version_id": self.uuid_to_str(document.previous_version_id),
            "final_score": document.final_score,
            "status": document.status.value,
            "generated_at": document.generated_at,
            "sent_at": document.sent_at,
            "acknowledged_at": document.acknowledged_at,
            "artifact_path": document.artifact_path,
            "version_created_by": str(document.version_created_by),
            "version_created_at": document.version_created_at,
        })
        self.execute_query(sql, tuple(insert_params), commit=True)
        return document

    def update_document_status(self, document: VersionedDocument) -> VersionedDocument:
        sql = """
            UPDATE RESULT_DOCUMENTS
            SET STATUS = %s, GENERATED_AT = %s, SENT_AT = %s,
                ACKNOWLEDGED_AT = %s, ARTIFACT_PATH = %s
            WHERE ID = %s
        """
        params = (
            document.status.value, document.generated_at, document.sent_at,
            document.acknowledged_at, document.artifact_path, str(document.id),
        )
        if self.execute_query(sql, params, commit=True) == 0:
            raise RepositoryException(f"Document {document.id} does not exist")
        return document

    def next_document_number(self, event_id: UUID, kind: DocumentKind) -> int:
        sql = """
            SELECT COALESCE(MAX(DOCUMENT_NUMBER), 0) + 1 AS NEXT_NUMBER
            FROM RESULT_DOCUMENTS WHERE EVENT_ID = %s AND KIND = %s
        """
        row = self.execute_query(sql, (str(event_id), kind.value), fetch_one=True)
        return int(row["NEXT_NUMBER"]) if row else 1

    def _document_from_row(self, row: Dict[str, Any]) -> VersionedDocument:
        r = self.row_to_dict(row)
        document_cls = DOCUMENT_CLASSES[DocumentKind(r["kind"])]
        return document_cls(
            id=UUID(r["id"]),
            event_id=UUID(r["event_id"]),
            product_sample_id=UUID(r["product_sample_id"]),
            applicant_id=UUID(r["applicant_id"]),
            document_number=r["document_number"],
            version=r["version"],
            previous_version_id=self.str_to_uuid(r["previous_version_id"]),
            final_score=self.to_decimal(r["final_score"]),
            status=DocumentStatus(r["status"]),
            generated_at=self.normalize_timestamp(r["generated_at"]),
            sent_at=self.normalize_timestamp(r["sent_at"]),
            acknowledged_at=self.normalize_timestamp(r["acknowledged_at"]),
            artifact_path=r["artifact_path"],
            version_created_by=UUID(r["version_created_by"]),
            version_created_at=self.normalize_timestamp(r["version_created_at"]),
        )
