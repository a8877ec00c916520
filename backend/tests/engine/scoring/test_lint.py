# tests/engine/scoring/test_lint.py
"""
Tests unitaires pour engine.scoring.lint

Couverture :
    score_bounds / achievable_scores :
        - (min, max) et ensemble exact des scores atteignables
        - Questions sans option ignorées
    find_score_gaps :
        - Couverture complète → aucun trou
        - Scores atteignables non couverts, bornes ouvertes
    find_shadowed_results :
        - Plage contenue dans une plage antérieure → SHADOWED
        - Chevauchement partiel → aucun avertissement
        - Plage hors d'atteinte → OUT_OF_REACH
        - Couverture totale → tous les résultats suivants masqués
        - Patterns jumeaux selon le comparateur
"""
import pytest

from quizlab.engine.definition.model import Question
from quizlab.engine.scoring.lint import (
    achievable_scores,
    find_score_gaps,
    find_shadowed_results,
    score_bounds,
)
from quizlab.shared.enums import LintKind
from tests.conftest import (
    low_high_test,
    make_pattern_result,
    make_question,
    make_range_result,
    make_test,
    tagged_test,
)

pytestmark = pytest.mark.engine


def _with_results(*results):
    return make_test(
        questions=[make_question("q1", scores=(0, 5)), make_question("q2", scores=(0, 3))],
        results=results,
    )


# ── Bornes ────────────────────────────────────────────────────────────────────

class TestBounds:
    def test_bornes(self):
        assert score_bounds(low_high_test()) == (0, 8)

    def test_scores_atteignables_exacts(self):
        assert achievable_scores(low_high_test()) == frozenset({0, 3, 5, 8})

    def test_question_sans_option_ignoree(self):
        test = make_test(questions=[make_question("q1", scores=(1, 4)), Question(id="q2", prompt="Vide")])
        assert score_bounds(test) == (1, 4)
        assert achievable_scores(test) == frozenset({1, 4})

    def test_test_sans_question(self):
        assert score_bounds(make_test()) == (0, 0)


# ── Trous de couverture ───────────────────────────────────────────────────────

class TestScoreGaps:
    def test_couverture_complete(self):
        assert find_score_gaps(low_high_test()) == []

    def test_scores_non_couverts(self):
        test = _with_results(make_range_result("low", 0, 4))
        assert find_score_gaps(test) == [5, 8]

    def test_sans_resultat(self):
        assert find_score_gaps(_with_results()) == [0, 3, 5, 8]

    def test_borne_ouverte_couvre_le_haut(self):
        test = _with_results(make_range_result("low", 0, 3), make_range_result("top", 5))
        assert find_score_gaps(test) == []

    def test_patterns_ignores(self):
        test = _with_results(make_pattern_result("p", ("A",)))
        assert find_score_gaps(test) == [0, 3, 5, 8]


# ── Résultats masqués ─────────────────────────────────────────────────────────

class TestShadowedResults:
    def test_aucun_avertissement(self):
        assert find_shadowed_results(low_high_test()) == []

    def test_plage_contenue_dans_une_plage_anterieure(self):
        test = _with_results(make_range_result("large", 0, 10), make_range_result("etroit", 4, 6))
        warnings = find_shadowed_results(test)
        assert [(w.kind, w.result_id, w.shadowed_by) for w in warnings] == [
            (LintKind.SHADOWED, "etroit", ("large",)),
        ]

    def test_plage_couverte_par_plusieurs_plages(self):
        test = _with_results(
            make_range_result("a", 0, 3),
            make_range_result("b", 5, 5),
            make_range_result("c", 2, 6),
        )
        warnings = find_shadowed_results(test)
        assert [(w.result_id, w.shadowed_by) for w in warnings] == [("c", ("a", "b"))]

    def test_chevauchement_partiel(self):
        test = _with_results(make_range_result("a", 0, 4), make_range_result("b", 3, 8))
        assert find_shadowed_results(test) == []

    def test_plage_hors_d_atteinte(self):
        test = _with_results(make_range_result("expert", 20), make_range_result("trou", 1, 2))
        warnings = find_shadowed_results(test)
        assert [(w.kind, w.result_id) for w in warnings] == [
            (LintKind.OUT_OF_REACH, "expert"),
            (LintKind.OUT_OF_REACH, "trou"),
        ]

    def test_couverture_totale_masque_la_suite(self):
        test = _with_results(
            make_range_result("tout", 0),
            make_pattern_result("p", ("A",)),
            make_range_result("r", 3, 3),
        )
        warnings = find_shadowed_results(test)
        assert [(w.result_id, w.shadowed_by) for w in warnings] == [
            ("p", ("tout",)),
            ("r", ("tout",)),
        ]


class TestShadowedPatterns:
    def _kinds(self, *results):
        return [(w.result_id, w.shadowed_by) for w in find_shadowed_results(tagged_test(results=results))]

    def test_patterns_ordonnes_identiques(self):
        assert self._kinds(
            make_pattern_result("p1", ("A", "B")),
            make_pattern_result("p2", ("A", "B")),
        ) == [("p2", ("p1",))]

    def test_patterns_ordonnes_differents(self):
        assert self._kinds(
            make_pattern_result("p1", ("A", "B")),
            make_pattern_result("p2", ("B", "A")),
        ) == []

    def test_non_ordonne_masque_un_ordonne(self):
        assert self._kinds(
            make_pattern_result("p1", ("A", "B"), ordered=False),
            make_pattern_result("p2", ("B", "A", "B")),
        ) == [("p2", ("p1",))]

    def test_ordonne_ne_masque_pas_un_non_ordonne(self):
        assert self._kinds(
            make_pattern_result("p1", ("A", "B")),
            make_pattern_result("p2", ("A", "B"), ordered=False),
        ) == []
