"""Study session runner: selects words and applies ratings."""
import logging
import random
from datetime import date
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from lexideck import monitoring
from lexideck.config import SchedulerSettings, StudySettings, settings
from lexideck.models.models import Word
from lexideck.models.progress_models import Quality, Quiz, ReviewOutcome, Status, StudySummary
from lexideck.services.progress_store import ProgressStore, SqlProgressStore
from lexideck.services.scheduler import compute_next_review, now_ms, reward_for, validate_quality
from lexideck.services.session_builder import build_session
from lexideck.services.stats_service import StatsService
from lexideck.services.summary import summarize
from lexideck.services.word_service import WordService

logger = logging.getLogger(__name__)


class StudyService:
    """Drives study sessions on top of the scheduler and the stores."""

    def __init__(
        self,
        db: Session,
        store: Optional[ProgressStore] = None,
        scheduler_config: Optional[SchedulerSettings] = None,
        study_config: Optional[StudySettings] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the service with a database session.

        Progress goes to the database unless another store is given.
        """
        self.db = db
        self.store = store or SqlProgressStore(db)
        self.scheduler_config = scheduler_config or settings.scheduler
        self.study_config = study_config or settings.study
        self.rng = rng or random.Random()
        self.word_service = WordService(db)
        self.stats_service = StatsService(db, self.study_config.daily_goal)

    def start_session(
        self,
        scope: Optional[str] = None,
        count: Optional[int] = None,
        now: Optional[int] = None,
    ) -> List[Word]:
        """Choose the words of a new session; empty when nothing is left to study."""
        scope = scope or self.study_config.default_scope
        count = self.study_config.session_size if count is None else count
        words = self.word_service.get_words_for_scope(scope)
        progress = self.store.snapshot(scope)
        session = build_session(words, progress, scope, count, now=now, rng=self.rng)

        monitoring.sessions_built.labels(scope=scope).inc()
        monitoring.session_size.observe(len(session))
        if not session:
            logger.info(f"Nothing to study in scope {scope}")
        return session

    def rate_word(
        self,
        word: Union[Word, str],
        quality: Union[int, Quality],
        scope: Optional[str] = None,
        now: Optional[int] = None,
        today: Optional[date] = None,
    ) -> ReviewOutcome:
        """Apply one rating: schedule, persist, reward and log."""
        quality = validate_quality(quality)
        word_id = word.id if isinstance(word, Word) else word
        if self.word_service.get_word(word_id) is None:
            raise ValueError(f"Word {word_id} not found")
        scope = scope or self.study_config.default_scope
        now = now_ms() if now is None else now
        today = today or date.today()

        previous, progress = self.store.update(
            scope,
            word_id,
            lambda current: compute_next_review(current, quality, now, self.scheduler_config),
        )
        xp = reward_for(quality, previous.status, self.scheduler_config)

        self.stats_service.add_xp(xp)
        self.stats_service.update_streak(today)
        if quality >= Quality.GOOD and previous.status is Status.NEW:
            self.stats_service.increment_words_learned()
        self.stats_service.update_daily_log(
            today,
            now,
            words_studied=1,
            xp_earned=xp,
            correct_answers=1 if quality >= Quality.GOOD else 0,
            total_answers=1,
        )

        monitoring.reviews_total.labels(quality=str(int(quality))).inc()
        monitoring.xp_awarded.inc(xp)
        if previous.status is not progress.status:
            monitoring.status_transitions.labels(
                from_status=previous.status.value,
                to_status=progress.status.value,
            ).inc()

        logger.info(
            f"Rated {word_id} in {scope} with {quality.name}: "
            f"{previous.status.value} -> {progress.status.value}, next in {progress.interval} min, +{xp} XP"
        )
        return ReviewOutcome(
            word_id=word_id,
            scope=scope,
            previous=previous,
            progress=progress,
            xp=xp,
        )

    def build_quiz(self, word: Word, scope: Optional[str] = None) -> Quiz:
        """Multiple choice question with distractors from the same scope."""
        scope = scope or self.study_config.default_scope
        candidates = [w for w in self.word_service.get_words_for_scope(scope) if w.id != word.id]
        distractors = self.rng.sample(
            candidates,
            min(len(candidates), self.study_config.quiz_options - 1),
        )
        options = distractors + [word]
        self.rng.shuffle(options)
        return Quiz(
            word=word,
            options=options,
            correct_index=next(i for i, option in enumerate(options) if option.id == word.id),
        )

    def answer_quiz(
        self,
        quiz: Quiz,
        index: int,
        scope: Optional[str] = None,
        now: Optional[int] = None,
        today: Optional[date] = None,
    ) -> ReviewOutcome:
        """Rate the quiz word Easy on a correct choice, Hard otherwise."""
        if not 0 <= index < len(quiz.options):
            raise ValueError(f"Option {index} out of range")
        correct = index == quiz.correct_index
        self.stats_service.record_quiz_answer(correct)
        monitoring.quiz_answers.labels(correct=str(correct).lower()).inc()
        return self.rate_word(
            quiz.word,
            Quality.EASY if correct else Quality.HARD,
            scope=scope,
            now=now,
            today=today,
        )

    def finish_quiz(self, now: Optional[int] = None, today: Optional[date] = None) -> None:
        """Count a completed quiz round."""
        self.stats_service.increment_quizzes_taken()
        self.stats_service.update_daily_log(
            today or date.today(),
            now_ms() if now is None else now,
            quizzes_done=1,
        )

    def summary(self, scope: Optional[str] = None, now: Optional[int] = None) -> StudySummary:
        """Status breakdown of a scope."""
        scope = scope or self.study_config.default_scope
        return summarize(self.store.snapshot(scope), scope, now)
