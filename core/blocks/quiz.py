"""Single-select quiz interaction for quiz blocks."""

from dataclasses import dataclass

from .types import QuizData


class QuizStateError(Exception):
    """Raised when an action is not allowed in the attempt's current state."""
    pass


@dataclass
class QuizResult:
    correct: bool
    selected: int
    correct_answer: int | None


def correct_option_index(quiz: QuizData) -> int | None:
    """
    Resolve correctAnswer to an option index.

    Authors store either the option index or the option text.
    """
    answer = quiz.correct_answer
    if isinstance(answer, bool) or answer is None:
        return None
    if isinstance(answer, int):
        return answer if 0 <= answer < len(quiz.options) else None
    if isinstance(answer, str):
        if answer.strip().isdigit():
            index = int(answer.strip())
            if 0 <= index < len(quiz.options):
                return index
        try:
            return quiz.options.index(answer)
        except ValueError:
            return None
    return None


class QuizAttempt:
    """
    A learner's attempt at one quiz block.

    The learner selects one option, checks it to reveal correctness, and
    may retry after checking. Selection is locked between check and retry.
    """

    def __init__(self, quiz: QuizData):
        self.quiz = quiz
        self.selected: int | None = None
        self.result: QuizResult | None = None

    @property
    def is_checked(self) -> bool:
        return self.result is not None

    def select(self, option_index: int) -> None:
        if self.is_checked:
            raise QuizStateError("Answer already checked; retry to choose again")
        if not 0 <= option_index < len(self.quiz.options):
            raise IndexError(f"No option {option_index}")
        self.selected = option_index

    def check(self) -> QuizResult:
        if self.selected is None:
            raise QuizStateError("Select an option before checking")
        if self.result is None:
            answer = correct_option_index(self.quiz)
            self.result = QuizResult(
                correct=answer is not None and self.selected == answer,
                selected=self.selected,
                correct_answer=answer,
            )
        return self.result

    def retry(self) -> None:
        self.selected = None
        self.result = None
