"""Quiz session engine."""

import asyncio
import logging
import random

from .config import CUMULATIVE_QUESTION_COUNT, GRADER_TIMEOUT_SECONDS
from .errors import PreconditionViolation
from .interfaces import Grader
from .judge import judge
from .models import DailyRecord, SessionState, TestMode, TestResult, TestSession

logger = logging.getLogger(__name__)


def _valid_verdict(verdict) -> bool:
    return (
        isinstance(verdict, dict)
        and isinstance(verdict.get('isCorrect'), bool)
        and isinstance(verdict.get('feedback'), str)
    )


class TestSessionEngine:
    """Builds question sets and steps a TestSession through grading.

    Grading calls within one session are strictly sequential: a second
    answer is refused while the previous one is still being graded.
    """

    def __init__(self, grader: Grader | None, timeout: float = GRADER_TIMEOUT_SECONDS,
                 rng: random.Random = None):
        self.grader = grader
        self.timeout = timeout
        self.rng = rng or random.Random()

    def build_pool(self, mode: TestMode, today_record: DailyRecord,
                   catalog_words: list, history_words: list) -> list:
        """Select the candidate words for a new session."""
        if mode == TestMode.TODAY:
            return today_record.quiz_words() if today_record else []
        if catalog_words:
            return list(catalog_words)
        # Same word on several days: the latest meaning wins
        unique = {}
        for w in history_words:
            if w.is_filled():
                unique[w.key()] = w
        return list(unique.values())

    def start(self, mode: TestMode, today_record: DailyRecord,
              catalog_words: list, history_words: list) -> TestSession:
        mode = TestMode(mode)
        pool = self.build_pool(mode, today_record, catalog_words, history_words)
        if not pool:
            raise PreconditionViolation("No words available to test")

        questions = list(pool)
        self.rng.shuffle(questions)
        if mode == TestMode.CUMULATIVE:
            questions = questions[:CUMULATIVE_QUESTION_COUNT]

        session = TestSession(mode, questions)
        session.state = SessionState.IN_PROGRESS
        logger.info(f"Started {mode.value} test {session.id} with {len(questions)} questions")
        return session

    async def answer(self, session: TestSession, spelling: str, meaning: str) -> TestResult | None:
        """Grade the current question and advance the session.

        Returns the recorded TestResult, or None if the session was closed
        while the answer was being graded.
        """
        if session.closed:
            raise PreconditionViolation(f"Test {session.id} is closed")
        if session.state != SessionState.IN_PROGRESS:
            raise PreconditionViolation(f"Test {session.id} is not in progress")
        if session.grading:
            raise PreconditionViolation(f"Test {session.id} is already grading an answer")

        target = session.questions[session.current_index]
        session.grading = True
        try:
            verdict = await self._grade(target.word, target.meaning, spelling, meaning)
        finally:
            session.grading = False

        if session.closed:
            logger.info(f"Dropping grade for closed test {session.id}")
            return None

        result = TestResult(
            target.word, target.meaning, spelling, meaning,
            verdict['isCorrect'], verdict['feedback']
        )
        session.results.append(result)
        if session.current_index + 1 < len(session.questions):
            session.current_index += 1
        else:
            session.current_index = len(session.questions)
            session.state = SessionState.FINISHED
            correct, total = session.score()
            logger.info(f"Test {session.id} finished: {correct}/{total}")
        return result

    def close(self, session: TestSession) -> None:
        session.closed = True

    async def _grade(self, word: str, meaning: str, spelling: str, user_meaning: str) -> dict:
        if self.grader is None:
            return judge(word, meaning, spelling, user_meaning)
        try:
            loop = asyncio.get_running_loop()
            verdict = await asyncio.wait_for(
                loop.run_in_executor(
                    None,
                    lambda: self.grader.grade(word, meaning, spelling, user_meaning)
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Grader timed out after {self.timeout}s, using local judge")
            return judge(word, meaning, spelling, user_meaning)
        except Exception as e:
            logger.warning(f"Grader failed ({e}), using local judge")
            return judge(word, meaning, spelling, user_meaning)

        if not _valid_verdict(verdict):
            logger.warning(f"Grader returned unusable verdict {verdict!r}, using local judge")
            return judge(word, meaning, spelling, user_meaning)
        return verdict
