# tests/test_property_based.py
"""
Property-Based Tests - scoring aggregation and document version chains

Hypothesis tests with max_examples=500, covering:
  - 5 ScoringAggregationEngine properties
  - 2 version chain properties
"""

from decimal import Decimal
from uuid import uuid4

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from app.models.criterion import ScoringPolicy
from app.models.document import Protocol
from app.scoring.aggregation import ScoringAggregationEngine
from app.scoring.utils import mean, quantize

# ---------------------------------------------------------------------------
# Shared strategies
# ---------------------------------------------------------------------------

score_st = st.decimals(min_value=0, max_value=100, places=2, allow_nan=False, allow_infinity=False)
scores_st = st.lists(score_st, min_size=1, max_size=25)


@st.composite
def policy_st(draw):
    """Draw a ScoringPolicy with small trim counts."""
    return ScoringPolicy(
        event_id=uuid4(),
        trim_high_low_from_count=draw(st.integers(min_value=1, max_value=10)),
        trim_count_high=draw(st.integers(min_value=0, max_value=3)),
        trim_count_low=draw(st.integers(min_value=0, max_value=3)),
        rounding_decimals=draw(st.integers(min_value=0, max_value=4)),
    )


engine = ScoringAggregationEngine()


def trimming_leaves_values(values, policy):
    count = len(values)
    return not policy.should_trim(count) or policy.trim_count_low + policy.trim_count_high < count


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class TestAggregationPropertyBased:

    @given(scores_st, policy_st())
    @settings(max_examples=500)
    def test_score_within_input_range(self, values, policy):
        assume(trimming_leaves_values(values, policy))
        result = engine.aggregate(values, policy)
        step = Decimal(10) ** -policy.rounding_decimals
        assert min(values) - step <= result.final_score <= max(values) + step

    @given(scores_st, policy_st(), st.randoms(use_true_random=False))
    @settings(max_examples=500)
    def test_order_independent(self, values, policy, rnd):
        assume(trimming_leaves_values(values, policy))
        shuffled = list(values)
        rnd.shuffle(shuffled)
        assert engine.aggregate(values, policy).final_score == engine.aggregate(shuffled, policy).final_score

    @given(scores_st, policy_st())
    @settings(max_examples=500)
    def test_trim_accounting(self, values, policy):
        assume(trimming_leaves_values(values, policy))
        result = engine.aggregate(values, policy)
        assert len(result.used_values) + len(result.trimmed_low) + len(result.trimmed_high) == len(values)
        if result.trimmed_low and result.used_values:
            assert max(result.trimmed_low) <= min(result.used_values)
        if result.trimmed_high and result.used_values:
            assert min(result.trimmed_high) >= max(result.used_values)

    @given(st.lists(score_st, min_size=1, max_size=4))
    @settings(max_examples=500)
    def test_below_threshold_is_plain_mean(self, values):
        policy = ScoringPolicy(event_id=uuid4(), trim_high_low_from_count=5)
        assert engine.aggregate(values, policy).final_score == quantize(mean(values), 2)

    @given(score_st, st.integers(min_value=1, max_value=25))
    @settings(max_examples=500)
    def test_uniform_scores_unchanged(self, value, count):
        policy = ScoringPolicy(event_id=uuid4(), trim_high_low_from_count=count + 1)
        assert engine.aggregate([value] * count, policy).final_score == quantize(value, 2)


# ---------------------------------------------------------------------------
# Version chains
# ---------------------------------------------------------------------------


class TestVersionChainPropertyBased:

    @given(st.integers(min_value=1, max_value=15))
    @settings(max_examples=500)
    def test_versions_increment_by_one(self, length):
        doc = Protocol(
            event_id=uuid4(), product_sample_id=uuid4(), applicant_id=uuid4(),
            document_number=1, final_score=Decimal("5"), version_created_by=uuid4(),
        )
        chain = [doc]
        for _ in range(length - 1):
            chain.append(chain[-1].create_new_version(uuid4(), Decimal("5")))

        assert [d.version for d in chain] == list(range(1, length + 1))
        for previous, current in zip(chain, chain[1:]):
            assert current.previous_version_id == previous.id
            assert current.document_number == previous.document_number

    @given(score_st, score_st)
    @settings(max_examples=500)
    def test_new_version_keeps_previous_snapshot(self, first, second):
        doc = Protocol(
            event_id=uuid4(), product_sample_id=uuid4(), applicant_id=uuid4(),
            document_number=2, final_score=first, version_created_by=uuid4(),
        )
        nxt = doc.create_new_version(uuid4(), second)
        assert doc.final_score == first
        assert nxt.final_score == second
        assert doc.version == 1
