import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.errors import InvalidReview
from app.db.models.review import Review
from app.db.models.user import Talent
from app.repositories.reviews import ReviewRepository
from app.schemas.review import ReviewCreate
from app.services.reviews import ReviewAggregator


def review_in(rating=5, **overrides):
    fields = dict(talent_id="talent-1", client_id="client-1", reservation_id="res-1", rating=rating, comment="great")
    fields.update(overrides)
    return ReviewCreate(**fields)


async def talent_summary(db):
    talent = (await db.execute(select(Talent).where(Talent.id == "talent-1").execution_options(populate_existing=True))).scalars().one()
    return talent.rating_average, talent.rating_count


@pytest.mark.asyncio
async def test_summary_recomputed_from_all_reviews(db, people):
    aggregator = ReviewAggregator(ReviewRepository(db))

    for rating in (5, 3, 4):
        result = await aggregator.submit_review(review_in(rating))

    assert result.summary_updated is True
    assert result.rating_average == 4.0
    assert result.rating_count == 3
    assert await talent_summary(db) == (4.0, 3)


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6, -1, None, "5", True, 4.5])
async def test_rating_out_of_range_is_rejected(db, people, rating):
    aggregator = ReviewAggregator(ReviewRepository(db))

    with pytest.raises(InvalidReview):
        await aggregator.submit_review(review_in(rating))

    assert (await db.execute(select(Review))).scalars().all() == []
    assert await talent_summary(db) == (0.0, 0)


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["talent_id", "client_id", "reservation_id"])
async def test_missing_reference_is_rejected(db, people, field):
    aggregator = ReviewAggregator(ReviewRepository(db))

    with pytest.raises(InvalidReview) as excinfo:
        await aggregator.submit_review(review_in(**{field: "  "}))

    assert field in excinfo.value.details["missing"]


@pytest.mark.asyncio
async def test_integral_float_rating_is_accepted(db, people):
    result = await ReviewAggregator(ReviewRepository(db)).submit_review(review_in(4.0))
    assert result.review.rating == 4


@pytest.mark.asyncio
async def test_stale_summary_keeps_review(db, people):
    class FlakyRepository(ReviewRepository):
        async def recompute_summary(self, talent_id):
            raise OperationalError("UPDATE talents", {}, Exception("database is locked"))

    result = await ReviewAggregator(FlakyRepository(db)).submit_review(review_in(2))

    assert result.summary_updated is False
    assert result.review.id is not None
    assert len((await db.execute(select(Review))).scalars().all()) == 1
    assert await talent_summary(db) == (0.0, 0)

    # next submission repairs the summary from the full set
    repaired = await ReviewAggregator(ReviewRepository(db)).submit_review(review_in(4))
    assert repaired.rating_count == 2
    assert repaired.rating_average == 3.0


@pytest.mark.asyncio
async def test_unknown_talent_keeps_review_without_summary(db):
    result = await ReviewAggregator(ReviewRepository(db)).submit_review(review_in(5, talent_id="ghost"))

    assert result.summary_updated is False
    assert result.rating_count is None


@pytest.mark.asyncio
async def test_list_reviews_newest_first(db, people):
    aggregator = ReviewAggregator(ReviewRepository(db))
    await aggregator.submit_review(review_in(3, reservation_id="res-1"))
    await aggregator.submit_review(review_in(5, reservation_id="res-2"))

    reviews = await aggregator.list_reviews("talent-1")

    assert [r.reservation_id for r in reviews] == ["res-2", "res-1"]


@pytest.mark.asyncio
async def test_overlapping_submissions_keep_summary_consistent(session_factory, people):
    # first request stores its review, then a second request runs a full
    # submission before the first one recomputes
    async with session_factory() as first, session_factory() as second:
        first_repo = ReviewRepository(first)
        await first_repo.add(Review(talent_id="talent-1", client_id="client-1", reservation_id="res-1", rating=5))

        await ReviewAggregator(ReviewRepository(second)).submit_review(review_in(1, reservation_id="res-2"))

        assert await first_repo.recompute_summary("talent-1") == (3.0, 2)

    async with session_factory() as session:
        assert await talent_summary(session) == (3.0, 2)


@pytest.mark.asyncio
async def test_summary_uses_reviews_already_stored(db, people):
    repository = ReviewRepository(db)
    for rating in (5, 3, 4):
        db.add(Review(talent_id="talent-1", client_id="client-1", reservation_id="res-x", rating=rating))
    await db.commit()

    assert await repository.recompute_summary("talent-1") == (4.0, 3)
    assert await repository.recompute_summary("ghost") is None
