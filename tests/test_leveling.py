import pytest

from kasukibot.core.leveling import (
    MAX_XP,
    MediaStats,
    UserStats,
    get_affinity,
    get_level,
    jaccard_index,
    user_xp,
    xp_required_for_level,
)


def make_stats(count=10, completed=5, minutes=1200, chapters=0, tags=("Isekai", "Magic"), genres=("Action",)):
    return MediaStats.from_anilist({
        "count": count,
        "meanScore": 75.5,
        "standardDeviation": 10.2,
        "minutesWatched": minutes,
        "chaptersRead": chapters,
        "statuses": [{"status": "COMPLETED", "count": completed}, {"status": "CURRENT", "count": 2}],
        "tags": [{"tag": {"name": t}} for t in tags],
        "genres": [{"genre": g} for g in genres],
    })


def test_level_table_is_monotonic():
    for level in range(0, 101):
        assert xp_required_for_level(level) < xp_required_for_level(level + 1)


def test_level_band_boundaries():
    assert xp_required_for_level(9) == 9 ** 3
    assert xp_required_for_level(10) == 10 ** 4
    assert xp_required_for_level(30) == 30 ** 5
    assert xp_required_for_level(100) == float(100) ** 11
    assert xp_required_for_level(101) == MAX_XP
    assert xp_required_for_level(-1) == MAX_XP


@pytest.mark.parametrize("level", [0, 1, 9, 10, 29, 30, 55, 89, 90, 99, 100])
def test_get_level_at_exact_requirement(level):
    got_level, progress, span = get_level(xp_required_for_level(level))
    assert got_level == level
    assert progress == 0
    assert span == xp_required_for_level(level + 1) - xp_required_for_level(level)


def test_get_level_zero():
    assert get_level(0.0) == (0, 0.0, xp_required_for_level(1))


def test_get_level_max_is_level_100():
    level, _, _ = get_level(MAX_XP)
    assert level == 100


def test_get_level_between_levels():
    level, progress, span = get_level(10.0)
    assert level == 2
    assert progress == pytest.approx(2.0)
    assert span == pytest.approx(19.0)


def test_jaccard():
    assert jaccard_index([], []) == 0.0
    assert jaccard_index(["a", "b"], ["b", "c"]) == pytest.approx(1 / 3)
    assert jaccard_index(["a"], ["a"]) == 1.0


def test_affinity_identity_is_200():
    stats = UserStats(anime=make_stats(), manga=make_stats(chapters=300))
    assert get_affinity(stats, stats) == pytest.approx(200.0)


def test_affinity_is_symmetric():
    u1 = UserStats(anime=make_stats(), manga=make_stats(chapters=30))
    u2 = UserStats(
        anime=make_stats(count=42, minutes=99, tags=("Magic", "Mecha"), genres=("Drama", "Action")),
        manga=make_stats(count=3, completed=1),
    )
    assert get_affinity(u1, u2) == pytest.approx(get_affinity(u2, u1))


def test_affinity_without_tags_or_stats():
    empty = UserStats(anime=MediaStats(), manga=MediaStats())
    # every closeness field matches, no tag/genre overlap possible
    assert get_affinity(empty, empty) == pytest.approx(100.0)


def test_user_xp():
    stats = UserStats(
        anime=make_stats(completed=10, minutes=1000),
        manga=make_stats(completed=5, chapters=100, minutes=0),
    )
    assert user_xp(stats) == pytest.approx(2 * 15 + 100 + 1000 * 0.1)


def test_user_stats_from_anilist_missing_statistics():
    stats = UserStats.from_anilist({"name": "nobody"})
    assert stats.anime.count == 0
    assert stats.manga.tags == []
