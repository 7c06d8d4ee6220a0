"""
Path utilities for FlowCanvas.

Handles path resolution for both development mode and frozen (PyInstaller) executables.
- In development: paths are relative to the project root
- When frozen: paths are relative to the executable location

External data (db/, workflow_templates/, config.json) lives NEXT TO the executable, not bundled inside.
"""

import sys
from pathlib import Path


def get_app_dir() -> Path:
    """
    Get the application directory.
    
    - In development: the project root (parent of flowcanvas/)
    - When frozen: the directory containing the executable
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent.parent


def get_db_dir() -> Path:
    """Get the database directory (db/) holding saved workflows."""
    return get_app_dir() / "db"


def get_workflows_dir() -> Path:
    """Get the directory where the host page stores workflow snapshots."""
    return get_db_dir() / "workflows"


def get_templates_dir() -> Path:
    """Get the directory containing YAML workflow templates."""
    return get_app_dir() / "workflow_templates"


def get_config_path() -> Path:
    """Get the path to the config file (theme selection and overrides)."""
    return get_app_dir() / "config.json"


def ensure_db_dir() -> Path:
    """
    Ensure the workflows directory exists, creating it if necessary.
    Returns the path to the db directory.
    """
    db_dir = get_db_dir()
    get_workflows_dir().mkdir(parents=True, exist_ok=True)
    return db_dir
