import pytest

from conftest import ACTION, COMEDY, DRAMA, HORROR, SCI_FI, THRILLER, FakeCatalog, FakeHistoryStore, run
from framevault.services.profile.builder import TasteProfileBuilder


def build(history: FakeHistoryStore, catalog: FakeCatalog, **kwargs):
    builder = TasteProfileBuilder(history, catalog, **kwargs)
    return run(builder.build("user-1"))


def test_genres_ranked_by_vote_count():
    history = FakeHistoryStore(watched=[1, 2, 3])
    catalog = FakeCatalog(genres={1: {SCI_FI, DRAMA}, 2: {SCI_FI}, 3: {SCI_FI, THRILLER, DRAMA}})

    profile = build(history, catalog)

    assert [(g.id, g.weight) for g in profile.top_genres] == [(SCI_FI, 3.0), (DRAMA, 2.0), (THRILLER, 1.0)]
    assert profile.top_genres[0].name == "Science Fiction"
    assert profile.sample_size == 3


def test_ties_break_on_ascending_genre_id():
    history = FakeHistoryStore(watched=[1, 2])
    catalog = FakeCatalog(genres={1: {THRILLER, ACTION}, 2: {COMEDY, HORROR}})

    profile = build(history, catalog)

    assert profile.genre_ids() == sorted([THRILLER, ACTION, COMEDY, HORROR])


def test_output_is_reproducible():
    history = FakeHistoryStore(watched=[3, 1, 2], collected={5, 4})
    catalog = FakeCatalog(genres={1: {DRAMA}, 2: {COMEDY}, 3: {DRAMA, COMEDY}, 4: {HORROR}, 5: {ACTION}})

    assert build(history, catalog) == build(history, catalog)


def test_profile_truncates_to_top_n():
    genres = {i: {gid} for i, gid in enumerate([28, 12, 16, 35, 80, 99, 18, 10751, 14, 36], start=1)}
    history = FakeHistoryStore(watched=list(genres))

    profile = build(history, FakeCatalog(genres=genres), top_n=8)

    assert len(profile.top_genres) == 8
    assert profile.sample_size == 10


def test_title_in_both_origins_votes_once_per_origin():
    history = FakeHistoryStore(watched=[1, 2], collected={1})
    catalog = FakeCatalog(genres={1: {DRAMA}, 2: {COMEDY}})

    profile = build(history, catalog)

    assert profile.weights() == {DRAMA: 2.0, COMEDY: 1.0}
    assert profile.sample_size == 2
    # genres are fetched once per distinct title
    assert sorted(catalog.genre_lookups) == [1, 2]


def test_duplicates_within_an_origin_count_once():
    history = FakeHistoryStore(watched=[1, 1, 1])
    catalog = FakeCatalog(genres={1: {DRAMA}})

    profile = build(history, catalog)

    assert profile.weights() == {DRAMA: 1.0}
    assert profile.sample_size == 1


def test_watched_history_is_capped():
    history = FakeHistoryStore(watched=[1, 2, 3])
    catalog = FakeCatalog(genres={1: {DRAMA}, 2: {DRAMA}, 3: {COMEDY}})

    profile = build(history, catalog, watched_cap=2)

    assert profile.weights() == {DRAMA: 2.0}


def test_cold_start_returns_empty_profile():
    profile = build(FakeHistoryStore(), FakeCatalog())

    assert profile.is_empty
    assert profile.sample_size == 0


def test_titles_without_genres_do_not_contribute():
    history = FakeHistoryStore(watched=[1, 2])
    catalog = FakeCatalog(genres={1: {DRAMA}})

    profile = build(history, catalog)

    assert profile.sample_size == 1


def test_history_outage_disables_profile_but_keeps_exclusions():
    history = FakeHistoryStore(watched=[1], collected={2}, failing={"watched"})
    catalog = FakeCatalog(genres={1: {DRAMA}, 2: {COMEDY}})
    builder = TasteProfileBuilder(history, catalog)

    snapshot = run(builder.load_history("user-1"))
    profile = run(builder.build_from_history(snapshot))

    assert snapshot.complete is False
    assert snapshot.exclusion_ids() == {2}
    assert profile.is_empty
    assert catalog.genre_lookups == []


def test_catalog_outage_yields_empty_profile_not_partial():
    history = FakeHistoryStore(watched=[1, 2])
    catalog = FakeCatalog(genres={1: {DRAMA}}, fail_genres=True)

    assert build(history, catalog).is_empty


def test_unexpected_history_error_aborts():
    class BrokenHistory(FakeHistoryStore):
        async def get_collection_tmdb_ids(self, user_id):
            raise KeyError("tmdb_id")

    with pytest.raises(KeyError):
        build(BrokenHistory(watched=[1]), FakeCatalog(genres={1: {DRAMA}}))


def test_unknown_genre_keeps_id_without_name():
    history = FakeHistoryStore(watched=[1])
    catalog = FakeCatalog(genres={1: {99999}})

    profile = build(history, catalog)

    assert profile.top_genres[0].id == 99999
    assert profile.top_genres[0].name is None


def test_logged_titles_exclude_without_shaping_taste():
    history = FakeHistoryStore(watched=[1], logged={1, 50})
    catalog = FakeCatalog(genres={1: {DRAMA}, 50: {HORROR}})
    builder = TasteProfileBuilder(history, catalog)

    snapshot = run(builder.load_history("user-1"))
    profile = run(builder.build_from_history(snapshot))

    assert snapshot.exclusion_ids() == {1, 50}
    assert profile.genre_ids() == [DRAMA]
