"""Persistent store for scored evaluation results.

Saves one JSON file per case so scores can be compared across model variants
without re-running the scorer.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from llm_scorecard.config import get_settings
from llm_scorecard.exceptions import EvaluationError

from evaluation.evaluator import CaseResult

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = str.maketrans({"/": "_", ":": "_", ".": "_", "\\": "_", " ": "_"})


def sanitize_name(name: str) -> str:
    """Make a case or model name safe to use as a file name."""
    return name.translate(_UNSAFE_CHARS)


class ResultStore:
    """Manages saved case results on disk."""

    def __init__(self, results_dir: Optional[Path] = None):
        """Initialize result store.

        Args:
            results_dir: Directory to store results.
                         Defaults to the ``results_dir`` setting.
        """
        if results_dir is None:
            results_dir = Path(get_settings().results_dir)

        self.results_dir = Path(results_dir)
        self.results_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Result directory: {self.results_dir}")

    def get_result_path(self, name: str, model: Optional[str] = None) -> Path:
        """Get path to the result file for a case.

        Args:
            name: Case name
            model: Model variant that produced the output (optional)

        Returns:
            Path to JSON result file
        """
        stem = sanitize_name(name)
        if model:
            stem = f"{stem}__{sanitize_name(model)}"
        return self.results_dir / f"{stem}.json"

    def has_result(self, name: str, model: Optional[str] = None) -> bool:
        """Check if a saved result exists."""
        return self.get_result_path(name, model).exists()

    def load_result(self, name: str, model: Optional[str] = None) -> Optional[CaseResult]:
        """Load a saved result.

        Returns:
            CaseResult if a readable result exists, None otherwise
        """
        path = self.get_result_path(name, model)

        if not path.exists():
            logger.debug(f"No saved result for {name}")
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            result = CaseResult.from_dict(data["result"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load saved result for {name}: {e}")
            return None

        logger.info(f"Loaded saved result for {name} (saved at {data.get('saved_at')})")
        return result

    def save_result(self, result: CaseResult, model: Optional[str] = None) -> Path:
        """Save a case result.

        Args:
            result: Scored case
            model: Model variant that produced the output (optional)

        Returns:
            Path of the written file

        Raises:
            EvaluationError: If the file cannot be written
        """
        path = self.get_result_path(result.name, model)

        data = {
            "model": model,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "result": result.to_dict(),
        }

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Failed to save result for {result.name}: {e}")
            raise EvaluationError(f"Could not write result file {path}: {e}") from e

        logger.info(f"Saved result for {result.name} to {path}")
        return path

    def delete_result(self, name: str, model: Optional[str] = None) -> bool:
        """Delete a saved result.

        Returns:
            True if file was deleted, False if it didn't exist
        """
        path = self.get_result_path(name, model)

        if path.exists():
            path.unlink()
            logger.info(f"Deleted saved result for {name}")
            return True

        logger.debug(f"No saved result to delete for {name}")
        return False

    def list_results(self) -> list[str]:
        """Get the file stems of all saved results."""
        return sorted(path.stem for path in self.results_dir.glob("*.json"))

    def clear_all(self) -> int:
        """Delete all saved results.

        Returns:
            Number of files deleted
        """
        count = 0
        for path in self.results_dir.glob("*.json"):
            path.unlink()
            count += 1

        logger.info(f"Cleared {count} saved results")
        return count
