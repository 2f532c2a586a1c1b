"""Service for managing the word corpus."""
import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session

from lexideck.models.models import Word

logger = logging.getLogger(__name__)

LEVELS = ["a1", "a2", "b1", "b2", "c1"]


def level_for_position(index: int, total: int) -> str:
    """CEFR level of a word from its position within its category."""
    if total <= 0:
        return LEVELS[0]
    position = index / total
    if position >= 0.8:
        return "c1"
    if position >= 0.6:
        return "b2"
    if position >= 0.4:
        return "b1"
    if position >= 0.2:
        return "a2"
    return "a1"


class WordService:
    """Service for managing the word corpus."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_word(self, word_id: str) -> Optional[Word]:
        """Get a word by its ID."""
        return self.db.query(Word).filter(Word.id == word_id).first()

    def get_word_by_text(self, text: str) -> Optional[Word]:
        """Get a word by its text."""
        return self.db.query(Word).filter(Word.text.ilike(text)).first()

    def load_category(self, category: str, entries: List[dict]) -> List[Word]:
        """Store the entries of one category, replacing words with the same ID."""
        words = []
        for index, entry in enumerate(entries):
            word = Word(
                id=f"{category}_{entry['id']}",
                text=entry["word"],
                translation=entry["translation"],
                phonetic=entry.get("phonetic"),
                example=entry.get("example"),
                category=category,
                level=entry.get("level") or level_for_position(index, len(entries)),
            )
            words.append(self.db.merge(word))
        self.db.commit()
        logger.info(f"Loaded {len(words)} words for category {category}")
        return words

    def load_category_file(self, path: Union[str, Path]) -> List[Word]:
        """Load a category JSON file; the category is the file name."""
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            entries = json.load(f)
        if not isinstance(entries, list):
            raise ValueError(f"Category file {path} must contain a list of words")
        return self.load_category(path.stem, entries)

    def load_categories(self, directory: Union[str, Path]) -> List[Word]:
        """Load every category file in a directory."""
        words = []
        for path in sorted(Path(directory).glob("*.json")):
            try:
                words.extend(self.load_category_file(path))
            except (OSError, ValueError, KeyError) as e:
                self.db.rollback()
                logger.error(f"Error loading category {path.stem}: {e}")
        logger.info(f"Loaded {len(words)} words from {directory}")
        return words

    def get_words(
        self,
        category: Optional[str] = None,
        level: Optional[str] = None,
    ) -> List[Word]:
        """Get the corpus in stable order, optionally filtered."""
        query = self.db.query(Word)
        if category is not None:
            query = query.filter(Word.category == category)
        if level is not None:
            query = query.filter(Word.level == level)
        return query.order_by(Word.category, Word.id).all()

    def get_words_for_scope(self, scope: str) -> List[Word]:
        """Words studied under a scope: "all", a category or a level."""
        if scope == "all":
            return self.get_words()
        if scope in LEVELS:
            return self.get_words(level=scope)
        return self.get_words(category=scope)

    def get_categories(self) -> List[str]:
        """Get the names of all loaded categories."""
        rows = self.db.query(Word.category).distinct().order_by(Word.category).all()
        return [row[0] for row in rows]

    def get_word_count(self) -> int:
        """Get the count of words in the database."""
        return self.db.query(Word).count()

    def search_words(self, query: str, limit: int = 10) -> List[Word]:
        """Search for words by text or translation."""
        return (
            self.db.query(Word)
            .filter(
                or_(
                    Word.text.ilike(f"%{query}%"),
                    Word.translation.ilike(f"%{query}%"),
                )
            )
            .order_by(Word.id)
            .limit(limit)
            .all()
        )

