import pytest

from dexcatalog.core.query_pipeline import QueryPipeline
from dexcatalog.domain.errors import RetryExhaustedError, NetworkError, ValidationError
from dexcatalog.domain.models.catalog import CatalogPage
from dexcatalog.domain.models.creature import Creature


def creature(entity_id, name, total=0, types=("normal",)):
    return Creature(
        id=entity_id,
        name=name,
        stats=[{"base_stat": total, "stat": {"name": "hp"}}],
        types=[{"type": {"name": t}} for t in types],
    )


ALPHA = creature(1, "alpha", 300, ("grass",))
BRAVO = creature(2, "Bravo", 500, ("fire",))
CHARLIE = creature(3, "charlie", 300, ("water",))
DELTA = creature(4, "delta", 650, ("fire", "flying"))


@pytest.fixture
def pipeline(mocker):
    corpus = CatalogPage.from_payload({
        "count": 4,
        "results": [{"name": n} for n in ("alpha", "alphabet", "bravo", "calpha")],
    })
    lookup = mocker.AsyncMock(side_effect=RetryExhaustedError("pokemon/x", NetworkError("down"), 4))
    return QueryPipeline(
        lookup=lookup,
        corpus_loader=mocker.AsyncMock(return_value=corpus),
        fetch_many=mocker.AsyncMock(side_effect=lambda names: [creature(i, n) for i, n in enumerate(names, 1)]),
        membership_loader=mocker.AsyncMock(return_value=frozenset({"alpha", "delta"})),
    )


@pytest.mark.asyncio
async def test_search_exact_hit_skips_corpus(pipeline):
    pipeline._lookup.side_effect = None
    pipeline._lookup.return_value = ALPHA

    assert await pipeline.search("  ALPHA ") == [ALPHA]
    pipeline._lookup.assert_awaited_once_with("alpha")
    pipeline._corpus_loader.assert_not_awaited()


@pytest.mark.asyncio
async def test_search_falls_back_to_substring_scan(pipeline):
    results = await pipeline.search("alph")

    assert [c.name for c in results] == ["alpha", "alphabet", "calpha"]
    pipeline._fetch_many.assert_awaited_once_with(["alpha", "alphabet", "calpha"])


@pytest.mark.asyncio
async def test_search_respects_limit(pipeline):
    await pipeline.search("alph", limit=2)
    pipeline._fetch_many.assert_awaited_once_with(["alpha", "alphabet"])


@pytest.mark.asyncio
async def test_search_without_matches_is_empty(pipeline):
    assert await pipeline.search("zzz") == []
    pipeline._fetch_many.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", None])
async def test_search_rejects_blank_query(pipeline, query):
    with pytest.raises(ValidationError):
        await pipeline.search(query)


@pytest.mark.asyncio
async def test_filter_by_category_keeps_members(pipeline):
    kept = await pipeline.filter_by_category(" Fire ", [ALPHA, BRAVO, DELTA])

    assert kept == [ALPHA, DELTA]
    pipeline._membership_loader.assert_awaited_once_with("fire")


def test_filter_by_stat_total_is_inclusive():
    entries = [ALPHA, BRAVO, CHARLIE, DELTA]
    assert QueryPipeline.filter_by_stat_total(entries, min_total=300, max_total=500) == [ALPHA, BRAVO, CHARLIE]
    assert QueryPipeline.filter_by_stat_total(entries, min_total=600) == [DELTA]
    assert QueryPipeline.filter_by_stat_total(entries) == entries


def test_sort_is_stable_in_both_directions():
    entries = [ALPHA, BRAVO, CHARLIE, DELTA]

    assert QueryPipeline.sort(entries, "stat_total", "asc") == [ALPHA, CHARLIE, BRAVO, DELTA]
    assert QueryPipeline.sort(entries, "stat_total", "desc") == [DELTA, BRAVO, ALPHA, CHARLIE]


def test_sort_by_name_ignores_case_and_accepts_aliases():
    entries = [CHARLIE, BRAVO, ALPHA]
    assert [c.id for c in QueryPipeline.sort(entries, "name")] == [1, 2, 3]
    assert QueryPipeline.sort(entries, "statTotal", "desc")[0] is BRAVO
    assert [c.primary_type for c in QueryPipeline.sort(entries, "type")] == ["fire", "grass", "water"]


@pytest.mark.parametrize("key, order", [("weight", "asc"), ("id", "up")])
def test_sort_rejects_unknown_key_or_order(key, order):
    with pytest.raises(ValidationError):
        QueryPipeline.sort([ALPHA], key, order)


def test_deduplicate_keeps_first_occurrence():
    duplicate = creature(1, "alpha-copy")
    assert QueryPipeline.deduplicate([ALPHA, BRAVO, duplicate]) == [ALPHA, BRAVO]


def test_summarize():
    summary = QueryPipeline.summarize([ALPHA, BRAVO, DELTA])

    assert summary.total == 3
    assert summary.average_stat_total == pytest.approx(1450 / 3)
    assert summary.strongest is DELTA
    assert summary.type_distribution == {"grass": 1, "fire": 2, "flying": 1}
    assert QueryPipeline.summarize([]) is None
