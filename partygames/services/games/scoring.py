from collections.abc import Mapping
from typing import Any, Iterable, List, NamedTuple, Optional, Union

from .errors import MalformedSubmission


class SubmittedAnswer(NamedTuple):
    question_id: str
    answer: Union[str, bool]
    time_spent: Optional[int] = None


class GradedAnswer(NamedTuple):
    question_id: int
    answer: Union[str, bool]
    is_correct: bool
    points_earned: int
    time_spent: Optional[int] = None


class ScoreResult(NamedTuple):
    total_score: int
    correct_answers: int
    total_answers: int
    graded: List[GradedAnswer]


def normalize_answers(payload: Any) -> List[SubmittedAnswer]:
    """Turn the raw `answers` payload into an ordered list of answers.

    Accepts a list, or a mapping whose values are taken in insertion order
    (some clients post answers keyed by question). Anything else, or an
    empty batch, is rejected.
    """
    if isinstance(payload, Mapping):
        items = list(payload.values())
    elif isinstance(payload, list):
        items = payload
    else:
        raise MalformedSubmission('Answers must be a list')
    if not items:
        raise MalformedSubmission()

    normalized = []
    for idx, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise MalformedSubmission(f'Answer #{idx + 1} is not an object')
        question_id = item.get('questionId')
        answer = item.get('answer')
        if question_id is None or question_id == '':
            raise MalformedSubmission(f'Answer #{idx + 1} is missing questionId')
        if not isinstance(answer, (str, bool)):
            raise MalformedSubmission(f'Answer #{idx + 1} must be a string or a boolean')
        time_spent = item.get('timeSpent')
        if time_spent is not None:
            if isinstance(time_spent, bool) or not isinstance(time_spent, int) or time_spent < 0:
                raise MalformedSubmission(f'Answer #{idx + 1} has an invalid timeSpent')
        normalized.append(SubmittedAnswer(str(question_id), answer, time_spent))
    return normalized


def _correct_option_text(options) -> Optional[str]:
    for opt in options or []:
        if isinstance(opt, Mapping) and opt.get('isCorrect') is True:
            return opt.get('text')
    return None


def grade_answer(question, answer: Union[str, bool]) -> bool:
    """Return True when `answer` is correct for `question`.

    Only multiple_choice, text and boolean questions are auto-graded; every
    other type is left for manual grading and never credited here. Boolean
    questions compare the raw value, so JSON `true` never matches 'true'.
    """
    qtype = question.question_type
    if qtype == 'multiple_choice':
        correct = _correct_option_text(question.options)
        return correct is not None and correct == answer
    if qtype == 'text':
        if not question.correct_answer or not isinstance(answer, str):
            return False
        return question.correct_answer.strip().lower() == answer.strip().lower()
    if qtype == 'boolean':
        return question.correct_answer is not None and question.correct_answer == answer
    return False


def score_submission(questions: Iterable, answers: List[SubmittedAnswer]) -> ScoreResult:
    """Grade a batch of answers against a game's questions.

    Answers naming an unknown question are skipped, as are repeated answers
    to a question already graded in this batch. `total_answers` counts the
    batch as submitted.
    """
    by_id = {str(q.id): q for q in questions}
    graded: List[GradedAnswer] = []
    seen = set()
    total_score = 0
    correct_answers = 0
    for submitted in answers:
        question = by_id.get(submitted.question_id)
        if question is None or question.id in seen:
            continue
        seen.add(question.id)
        is_correct = grade_answer(question, submitted.answer)
        points = int(question.points or 0) if is_correct else 0
        if is_correct:
            total_score += points
            correct_answers += 1
        graded.append(GradedAnswer(question.id, submitted.answer, is_correct, points, submitted.time_spent))
    return ScoreResult(total_score, correct_answers, len(answers), graded)
