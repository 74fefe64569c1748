import asyncio

from hypothesis import HealthCheck, given, settings, strategies as st

from beststories.aggregator import TopStoriesAggregator
from beststories.cache import ExpiringCache
from beststories.fetching import CandidateResolver, ItemFetcher
from beststories.models import Story

# Each candidate is either a valid score, an untitled record, an
# unrepresentable creation time, or a failure
outcomes = st.one_of(
    st.integers(min_value=0, max_value=5000),
    st.just("untitled"),
    st.just("bad-time"),
    st.just("error"),
)

# The fixtures used here are stateless factories
factory_fixtures = settings(
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)


def _run(source, count) -> list[Story]:
    cache = ExpiringCache()
    aggregator = TopStoriesAggregator(
        CandidateResolver(source, cache), ItemFetcher(source, cache)
    )
    return asyncio.run(aggregator.top_stories(count))


@settings(factory_fixtures, max_examples=50)
@given(
    outcome_list=st.lists(outcomes, max_size=60),
    count=st.integers(min_value=1, max_value=100),
)
def test_top_stories_invariants(
    fake_source, make_record, upstream_error, outcome_list, count
):
    """
    Invariants for top_stories:
    1. Never more than min(count, valid items) results.
    2. Scores are sorted descending.
    3. Only ids with valid titled records appear.
    4. Equal scores keep candidate order.
    """

    def item(outcome):
        if outcome == "untitled":
            return make_record("", score=1)
        if outcome == "bad-time":
            return make_record("story", score=1, time=10**13)
        if outcome == "error":
            return upstream_error()
        return make_record("story", score=outcome)

    ids = list(range(1, len(outcome_list) + 1))
    items = {i: item(o) for i, o in zip(ids, outcome_list)}
    valid_ids = [i for i, o in zip(ids, outcome_list) if isinstance(o, int)]

    stories = _run(fake_source(ids=ids, items=items), count)

    assert len(stories) == min(count, len(valid_ids))
    for a, b in zip(stories, stories[1:]):
        assert a.score >= b.score
        if a.score == b.score:
            assert a.id < b.id
    assert {s.id for s in stories} <= set(valid_ids)


@settings(factory_fixtures, max_examples=20)
@given(n=st.integers(min_value=0, max_value=700))
def test_result_never_exceeds_candidate_cap(fake_source, make_record, n):
    ids = list(range(n))
    source = fake_source(ids=ids, items={i: make_record("s", score=1) for i in ids})
    stories = _run(source, 10000)
    assert len(stories) == min(n, 500)
