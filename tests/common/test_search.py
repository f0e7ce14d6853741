from src.sunday_attendance.sunday_attendance.common.search import fold, fuzzy_filter, score, sort_by_name

NAMES = ["Alice Souza", "Bruna Lima", "João Batista", "Caio Pereira"]


def test_fold_strips_accents():
    assert fold("  João Ávila ") == "joao avila"


def test_prefix_and_substring_score_best():
    assert score("jo", "João Batista") == 0.0
    assert score("batis", "João Batista") == 0.1


def test_filter_ranks_and_drops_far_matches():
    assert fuzzy_filter(NAMES, "joao", key=str) == ["João Batista"]
    assert fuzzy_filter(NAMES, "lima", key=str) == ["Bruna Lima"]


def test_typos_still_match():
    assert "Caio Pereira" in fuzzy_filter(NAMES, "pereria", key=str)


def test_empty_query_keeps_order():
    assert fuzzy_filter(NAMES, "  ", key=str) == NAMES


def test_sort_by_name_ignores_accents():
    assert sort_by_name(["Érica", "Eduardo", "Ana"], key=str) == ["Ana", "Eduardo", "Érica"]
