"""
Scoring tests.
"""

from spacemission.classroom import ScoreResult, evaluate, normalize_answer
from spacemission.classroom.scoring import time_bonus
from spacemission.schemas import ExerciseType

from conftest import make_exercise


class TestNormalizeAnswer:
    """Test answer normalization."""

    def test_letters_uppercased(self):
        assert normalize_answer(ExerciseType.MULTIPLE_CHOICE, " b ") == "B"

    def test_option_text_maps_to_letter(self):
        options = ["True", "False"]
        assert normalize_answer(ExerciseType.TRUE_FALSE, "false", options) == "B"

    def test_numeric_kept_literal(self):
        assert normalize_answer(ExerciseType.NUMERIC, " 3.14 ") == "3.14"

    def test_empty_is_none(self):
        assert normalize_answer(ExerciseType.MULTIPLE_CHOICE, "   ") is None
        assert normalize_answer(ExerciseType.MULTIPLE_CHOICE, None) is None


class TestEvaluate:
    """Test per-question scoring."""

    def test_correct_timed_adds_remaining_seconds(self):
        ex = make_exercise(points=10, time_limit_seconds=30, correct_answer="A")
        assert evaluate(ex, "A", 20) == ScoreResult(is_correct=True, score=30)

    def test_correct_untimed_has_no_bonus(self):
        ex = make_exercise(points=5, time_limit_seconds=0, correct_answer="B")
        assert evaluate(ex, "B", None) == ScoreResult(is_correct=True, score=5)

    def test_wrong_answer_scores_zero(self):
        ex = make_exercise(points=5, correct_answer="B")
        assert evaluate(ex, "C", None) == ScoreResult(is_correct=False, score=0)

    def test_lowercase_answer_matches(self):
        ex = make_exercise(correct_answer="D")
        assert evaluate(ex, "d", None).is_correct

    def test_numeric_answer(self):
        ex = make_exercise(type=ExerciseType.NUMERIC, options=[], correct_answer="8")
        assert evaluate(ex, "8", None).score == 10
        assert not evaluate(ex, "9", None).is_correct

    def test_no_answer_is_wrong(self):
        ex = make_exercise()
        assert evaluate(ex, None, 10) == ScoreResult(is_correct=False, score=0)

    def test_deterministic(self):
        ex = make_exercise(points=7, time_limit_seconds=12)
        results = {evaluate(ex, "A", 4) for _ in range(50)}
        assert results == {ScoreResult(is_correct=True, score=11)}


class TestTimeBonus:
    def test_negative_remaining_clamped(self):
        ex = make_exercise(time_limit_seconds=10)
        assert time_bonus(ex, -3) == 0

    def test_untimed_ignores_remaining(self):
        ex = make_exercise(time_limit_seconds=0)
        assert time_bonus(ex, 25) == 0
