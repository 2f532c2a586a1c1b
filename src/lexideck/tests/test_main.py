"""Tests for the command line entry point."""
import json
from pathlib import Path

from sqlalchemy.orm import Session

from lexideck.__main__ import main
from lexideck.services.word_service import WordService


def test_main_loads_categories(db: Session, tmp_path: Path, caplog) -> None:
    """Test the entry point loads category files and reports summaries."""
    entries = [
        {"id": i, "word": f"word{i}", "translation": f"kelime{i}"}
        for i in range(1, 6)
    ]
    (tmp_path / "daily.json").write_text(json.dumps(entries), encoding="utf-8")

    with caplog.at_level("INFO"):
        assert main([str(tmp_path)]) == 0

    assert WordService(db).get_word_count() == 5
    assert any(record.getMessage().startswith("daily:") for record in caplog.records)
