import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import PersistenceFailure

logger = logging.getLogger(__name__)


class JsonStore:
    """Whole-document JSON persistence for the tracker state.

    ``load`` returns None when nothing has been saved yet. Saves go through a
    temp file in the target directory followed by ``os.replace`` so a crash
    mid-write never leaves a truncated document behind.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(f"Could not read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceFailure(f"{self.path} does not hold a JSON object.")
        return data

    def save(self, document: Dict[str, Any]) -> None:
        tmp = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".tmp_", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
            tmp = None
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceFailure(f"Could not write {self.path}: {exc}") from exc
        finally:
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)
        logger.debug("Saved %s", self.path)
