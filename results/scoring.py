import logging
from collections.abc import Mapping
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Set

from django.db import DatabaseError

from .exceptions import SubmissionValidationError, SubmissionPersistenceError
from .store import SubmissionStore

logger = logging.getLogger(__name__)


class Selection(NamedTuple):
    question_id: int
    answer_ids: FrozenSet[int]


class JudgedSelection(NamedTuple):
    question_id: int
    answer_ids: FrozenSet[int]
    is_correct: bool


class Submission(NamedTuple):
    user_id: int
    test_id: int
    elapsed_time: int
    selections: List[Selection]


class SubmissionResult(NamedTuple):
    statistic_id: int
    score: int
    correct_count: int
    total_questions: int


MAX_ID = 2 ** 63 - 1
MAX_ELAPSED_TIME = 2147483647


def _is_int(value) -> bool:
    # bool int'ning subklassi, uni id sifatida qabul qilmaymiz
    return isinstance(value, int) and not isinstance(value, bool)


def _is_id(value) -> bool:
    # BigAutoField chegarasidan tashqari qiymatlar bazaga yetib bormasligi kerak
    return _is_int(value) and 0 < value <= MAX_ID


def parse_submission(data) -> Submission:
    """Validate the raw request body. Any defect rejects the whole submission."""
    if not isinstance(data, Mapping):
        raise SubmissionValidationError("Request body must be a JSON object.")

    user_id = data.get('user_id')
    test_id = data.get('test_id')
    answers = data.get('answers')

    if user_id is None or test_id is None or answers is None:
        raise SubmissionValidationError("user_id, test_id and answers are required.")
    if not _is_id(user_id) or not _is_id(test_id):
        raise SubmissionValidationError("user_id and test_id must be positive integers.")
    if not isinstance(answers, list) or not answers:
        raise SubmissionValidationError("answers must be a non-empty list.")

    elapsed_time = data.get('elapsed_time', 0)
    if elapsed_time is None:
        elapsed_time = 0
    if not _is_int(elapsed_time) or not 0 <= elapsed_time <= MAX_ELAPSED_TIME:
        raise SubmissionValidationError(
            f"elapsed_time must be an integer between 0 and {MAX_ELAPSED_TIME}."
        )

    selections = []
    seen = set()
    for idx, item in enumerate(answers):
        if not isinstance(item, Mapping):
            raise SubmissionValidationError(f"answers[{idx}] must be an object.")
        question_id = item.get('question_id')
        answer_ids = item.get('answer_ids')
        if not _is_id(question_id):
            raise SubmissionValidationError(f"answers[{idx}].question_id must be a positive integer.")
        if not isinstance(answer_ids, list) or not answer_ids:
            raise SubmissionValidationError(f"answers[{idx}].answer_ids must be a non-empty list.")
        if not all(_is_id(a) for a in answer_ids):
            raise SubmissionValidationError(f"answers[{idx}].answer_ids must contain positive integers only.")
        if question_id in seen:
            raise SubmissionValidationError(f"Question {question_id} is answered more than once.")
        seen.add(question_id)
        selections.append(Selection(question_id, frozenset(answer_ids)))

    return Submission(user_id, test_id, elapsed_time, selections)


def is_selection_correct(selected: FrozenSet[int], correct: Set[int]) -> bool:
    """No partial credit: the selection must equal the correct set exactly."""
    return bool(correct) and selected == correct


def calculate_score(correct_count: int, total_questions: int) -> int:
    """
    round(100 * correct / total), halves rounded away from zero.

    A zero total scores 0 for callers outside SubmissionScorer.submit, where
    empty submissions are already rejected.
    """
    if total_questions <= 0:
        return 0
    ratio = Decimal(100 * correct_count) / Decimal(total_questions)
    return int(ratio.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def judge_selections(
    selections: List[Selection], correct_map: Dict[int, Set[int]]
) -> List[JudgedSelection]:
    return [
        JudgedSelection(
            s.question_id,
            s.answer_ids,
            is_selection_correct(s.answer_ids, correct_map.get(s.question_id, set())),
        )
        for s in selections
    ]


class SubmissionScorer:
    """
    Scores a learner's submission and persists the Statistic together with
    one AnswerRecord per submitted question.

    Stages run strictly in order and the first failure stops the pipeline:
    validate -> check references -> fetch correct answers -> score -> persist.
    The two inserts share one transaction.
    """

    def __init__(self, store: Optional[SubmissionStore] = None):
        self.store = store or SubmissionStore()

    def submit(self, data) -> SubmissionResult:
        submission = parse_submission(data)
        question_ids = [s.question_id for s in submission.selections]

        try:
            correct_map = self._load_answer_key(submission, question_ids)
        except DatabaseError as e:
            logger.critical("‼️ Javoblar kalitini olishda xatolik: %s", str(e), exc_info=True)
            raise SubmissionPersistenceError(f"Database error: {str(e)}") from e

        judged = judge_selections(submission.selections, correct_map)
        correct_count = sum(1 for j in judged if j.is_correct)
        total = len(judged)
        score = calculate_score(correct_count, total)
        logger.info(
            "📝 Natija: user=%s test=%s | %d/%d to'g'ri | ball=%d",
            submission.user_id, submission.test_id, correct_count, total, score,
        )

        try:
            with self.store.atomic():
                statistic_id = self.store.insert_statistic(
                    user_id=submission.user_id,
                    test_id=submission.test_id,
                    score=score,
                    elapsed_time=submission.elapsed_time,
                    correct_count=correct_count,
                    total_questions=total,
                )
                self.store.insert_answer_records(statistic_id, judged)
        except DatabaseError as e:
            logger.critical(
                "‼️ Natijani saqlashda xatolik, tranzaksiya bekor qilindi: %s", str(e), exc_info=True
            )
            raise SubmissionPersistenceError(f"Database save error: {str(e)}") from e

        logger.info("✓ Statistic yaratildi | ID: %s | Javoblar: %d", statistic_id, total)
        return SubmissionResult(statistic_id, score, correct_count, total)

    def _load_answer_key(self, submission: Submission, question_ids: List[int]) -> Dict[int, Set[int]]:
        if not self.store.user_exists(submission.user_id):
            raise SubmissionValidationError(f"User {submission.user_id} does not exist.")
        if not self.store.test_exists(submission.test_id):
            raise SubmissionValidationError(f"Test {submission.test_id} does not exist.")

        correct_map = self.store.fetch_correct_answers(submission.test_id, question_ids)
        unknown = [q_id for q_id in question_ids if q_id not in correct_map]
        if unknown:
            raise SubmissionValidationError(
                f"Questions {unknown} do not belong to test {submission.test_id}."
            )
        return correct_map
