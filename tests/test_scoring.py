from types import SimpleNamespace

import pytest

from partygames.services.games.errors import MalformedSubmission
from partygames.services.games.scoring import (
    SubmittedAnswer, grade_answer, normalize_answers, score_submission,
)


def _q(qid, qtype, points=10, options=None, correct_answer=None):
    return SimpleNamespace(id=qid, question_type=qtype, points=points,
                           options=options, correct_answer=correct_answer)


MC = _q(1, 'multiple_choice', points=10,
        options=[{'text': 'Paris', 'isCorrect': True}, {'text': 'Lyon', 'isCorrect': False}])
TEXT = _q(2, 'text', points=5, correct_answer='Eiffel Tower')
BOOL = _q(3, 'boolean', points=5, correct_answer='true')
PHOTO = _q(4, 'photo', points=3)
QUESTIONS = [MC, TEXT, BOOL, PHOTO]


def test_multiple_choice_correct_option_scores_points():
    result = score_submission([MC], [SubmittedAnswer('1', 'Paris')])
    assert result.graded[0].is_correct is True
    assert result.graded[0].points_earned == 10
    assert result.total_score == 10


def test_multiple_choice_without_flagged_option_never_credits():
    unflagged = _q(9, 'multiple_choice', options=[{'text': 'Paris'}, {'text': 'Lyon', 'isCorrect': False}])
    assert grade_answer(unflagged, 'Paris') is False
    assert grade_answer(unflagged, '') is False


def test_multiple_choice_is_exact_match():
    assert grade_answer(MC, 'paris') is False
    assert grade_answer(MC, ' Paris') is False


def test_text_answer_is_trimmed_and_case_insensitive():
    assert grade_answer(TEXT, ' eiffel tower ') is True
    assert grade_answer(TEXT, 'Eiffel') is False


def test_text_question_without_canonical_answer_never_credits():
    assert grade_answer(_q(7, 'text', correct_answer=None), '') is False


def test_boolean_uses_strict_equality():
    assert grade_answer(BOOL, 'true') is True
    assert grade_answer(BOOL, 'True') is False
    assert grade_answer(BOOL, ' true') is False


def test_other_types_are_recorded_without_points():
    result = score_submission([PHOTO], [SubmittedAnswer('4', 'selfie.jpg')])
    assert len(result.graded) == 1
    assert result.graded[0].is_correct is False
    assert result.graded[0].points_earned == 0
    assert result.total_score == 0


def test_unknown_question_ids_are_skipped():
    answers = [SubmittedAnswer('1', 'Paris'), SubmittedAnswer('999', 'whatever')]
    result = score_submission(QUESTIONS, answers)
    assert [g.question_id for g in result.graded] == [1]
    assert result.total_score == 10
    assert result.total_answers == 2


def test_repeated_question_is_graded_once():
    answers = [SubmittedAnswer('1', 'Paris'), SubmittedAnswer('1', 'Paris')]
    result = score_submission(QUESTIONS, answers)
    assert result.total_score == 10
    assert result.correct_answers == 1
    assert len(result.graded) == 1


def test_full_submission_totals():
    answers = normalize_answers([
        {'questionId': 1, 'answer': 'Paris'},
        {'questionId': 2, 'answer': 'eiffel tower'},
        {'questionId': 3, 'answer': 'false'},
        {'questionId': 4, 'answer': 'photo.png', 'timeSpent': 12},
    ])
    result = score_submission(QUESTIONS, answers)
    assert result.total_score == 15
    assert result.correct_answers == 2
    assert result.total_answers == 4
    assert result.graded[3].time_spent == 12


def test_scoring_is_deterministic():
    answers = normalize_answers([
        {'questionId': 1, 'answer': 'Lyon'},
        {'questionId': 2, 'answer': 'EIFFEL TOWER'},
        {'questionId': 3, 'answer': 'true'},
    ])
    assert score_submission(QUESTIONS, answers) == score_submission(QUESTIONS, answers)


def test_normalize_accepts_mapping_of_answers():
    answers = normalize_answers({'a': {'questionId': 1, 'answer': 'Paris'},
                                 'b': {'questionId': 2, 'answer': 'x'}})
    assert [a.question_id for a in answers] == ['1', '2']


@pytest.mark.parametrize('payload', [None, [], {}, 'Paris', 42])
def test_normalize_rejects_empty_or_non_list(payload):
    with pytest.raises(MalformedSubmission):
        normalize_answers(payload)


@pytest.mark.parametrize('item', [
    'Paris',
    {'answer': 'Paris'},
    {'questionId': 1, 'answer': 3},
    {'questionId': 1, 'answer': None},
    {'questionId': 1, 'answer': 'Paris', 'timeSpent': -1},
    {'questionId': 1, 'answer': 'Paris', 'timeSpent': 'slow'},
])
def test_normalize_rejects_malformed_entries(item):
    with pytest.raises(MalformedSubmission):
        normalize_answers([item])


def test_json_boolean_answers_are_accepted_and_graded_strictly():
    answers = normalize_answers([
        {'questionId': 3, 'answer': True},
        {'questionId': 1, 'answer': False},
    ])
    assert answers[0].answer is True
    result = score_submission(QUESTIONS, answers)
    assert [g.is_correct for g in result.graded] == [False, False]
    assert result.total_score == 0


def test_boolean_question_with_literal_true_answer():
    assert grade_answer(BOOL, True) is False
    assert grade_answer(_q(8, 'boolean', correct_answer=True), True) is True
    assert grade_answer(TEXT, True) is False
