"""
Workflow snapshot store used by the host page.

Each saved workflow is one JSON file in db/workflows/, named after a slug of
the workflow name. The editor engine never touches this module; the host
calls it from its on_save callback.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from flowcanvas.paths import get_workflows_dir

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', name.strip().lower()).strip('-')
    return slug or 'workflow'


class WorkflowStore:
    """Reads and writes workflow snapshots as JSON files."""

    def __init__(self, workflows_dir: Optional[Path] = None):
        self.workflows_dir = Path(workflows_dir) if workflows_dir else get_workflows_dir()
        self.workflows_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.workflows_dir / f"{slugify(name)}.json"

    def save(self, snapshot: Dict[str, Any]) -> Path:
        name = snapshot.get("name")
        if not name:
            raise ValueError("Workflow snapshot missing name")

        path = self.path_for(name)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, indent=2, ensure_ascii=False)
        logger.info(f"Saved workflow '{name}' to {path}")
        return path

    def load(self, name: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(name)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load workflow file {path}: {e}")
            return None

    def list_workflows(self) -> List[str]:
        """Names of stored workflows, sorted."""
        names = []
        for path in sorted(self.workflows_dir.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    names.append(json.load(f).get("name", path.stem))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Skipping unreadable workflow file {path}: {e}")
        return sorted(names)

    def delete(self, name: str) -> bool:
        path = self.path_for(name)
        if not path.exists():
            return False
        path.unlink()
        return True
