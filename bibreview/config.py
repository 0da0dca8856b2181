"""Configuration management.

``Settings`` is a **metaclass-based singleton**: the first call to
``Settings.load()`` creates the instance; every later call returns
the same object.  Use ``update()`` to change values at runtime, or
``reload()`` to re-read everything from disk.

User-editable configuration lives in ``.metadata/reviewer.yaml``.
On first run, missing files are copied from ``.metadata.example/``.
"""

import getpass
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from bibreview.document.buffer import BibDocument

CONFIG_FILENAME = "reviewer.yaml"


def _default_reviewer() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "reviewer"


# ---------------------------------------------------------------------------
# Singleton metaclass
# ---------------------------------------------------------------------------

class _SettingsMeta(type):
    """Metaclass that enforces a process-wide singleton for *Settings*.

    * First ``Settings(...)`` creates and caches the instance.
    * Later ``Settings(...)`` calls return the cached instance (args ignored).
    """

    _instances: dict[type, Any] = {}

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        if cls not in cls._instances:
            cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]


# ---------------------------------------------------------------------------
# Settings dataclass (singleton)
# ---------------------------------------------------------------------------

@dataclass
class Settings(metaclass=_SettingsMeta):
    """Application settings: a singleton with runtime-mutable values.

    Usage::

        settings = Settings.load()                 # first call → create
        settings = Settings.load()                 # later → same object
        settings.update(reviewer_id="alice")       # runtime change
        settings = Settings.reload()               # re-read from disk
    """

    reviewer_id: str = "reviewer"
    bib_path: Path = Path("review.bib")
    metadata_dir: Path = Path(".metadata")
    contact_email: Optional[str] = None
    request_timeout: float = 20.0
    autosave: bool = True
    report_unsupported: bool = False

    # ── Runtime helpers ───────────────────────────────────────────────

    def update(self, **kwargs: Any) -> None:
        """Mutate settings fields at runtime.

        >>> Settings.load().update(bib_path=Path("/tmp/test.bib"))
        """
        for key, value in kwargs.items():
            if not hasattr(self, key):
                raise AttributeError(f"Settings has no field '{key}'")
            setattr(self, key, value)

    # ── Factory / lifecycle ───────────────────────────────────────────

    @classmethod
    def load(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Load or return the singleton Settings instance.

        On first call the singleton is created; subsequent calls return
        the cached instance.  Pass *base_dir* to override the project
        root (defaults to the current working directory).
        """
        if cls in _SettingsMeta._instances:
            return _SettingsMeta._instances[cls]  # type: ignore[return-value]

        if base_dir is None:
            base_dir = Path.cwd()

        metadata_dir = base_dir / ".metadata"
        cls._ensure_default_files(base_dir, metadata_dir)
        data = _load_yaml(metadata_dir / CONFIG_FILENAME)

        bib_path = Path(data.get("bib_path") or "review.bib")
        if not bib_path.is_absolute():
            bib_path = base_dir / bib_path

        return cls(
            reviewer_id=str(data.get("reviewer_id") or _default_reviewer()),
            bib_path=bib_path,
            metadata_dir=metadata_dir,
            contact_email=data.get("contact_email") or None,
            request_timeout=float(data.get("request_timeout") or 20.0),
            autosave=bool(data.get("autosave", True)),
            report_unsupported=bool(data.get("report_unsupported", False)),
        )

    @classmethod
    def reload(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Discard the current singleton and re-load from disk."""
        cls.reset()
        return cls.load(base_dir)

    @classmethod
    def reset(cls) -> None:
        """Discard the singleton so the next ``load()`` re-creates it."""
        _SettingsMeta._instances.pop(cls, None)

    # ── Private ───────────────────────────────────────────────────────

    @staticmethod
    def _ensure_default_files(base_dir: Path, metadata_dir: Path) -> None:
        """Copy ``.metadata.example/`` templates when real files are missing."""
        example_dir = base_dir / ".metadata.example"
        if not example_dir.exists():
            return

        metadata_dir.mkdir(parents=True, exist_ok=True)
        for example_file in example_dir.iterdir():
            if example_file.is_file():
                target = metadata_dir / example_file.name
                if not target.exists():
                    shutil.copy2(example_file, target)
                    print(f"[bibreview] Created .metadata/{example_file.name} from template")


# ---------------------------------------------------------------------------
# YAML loaders
# ---------------------------------------------------------------------------

def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping, or {} when the file is missing or not a mapping."""
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def save_settings(settings: Settings) -> Path:
    """Persist the user-editable settings to ``reviewer.yaml``."""
    settings.metadata_dir.mkdir(parents=True, exist_ok=True)
    path = settings.metadata_dir / CONFIG_FILENAME
    data: dict[str, Any] = {
        "reviewer_id": settings.reviewer_id,
        "bib_path": str(settings.bib_path),
        "contact_email": settings.contact_email or "",
        "request_timeout": settings.request_timeout,
        "autosave": settings.autosave,
        "report_unsupported": settings.report_unsupported,
    }
    with open(path, "w", encoding="utf-8") as f:
        f.write("# bibreview settings\n")
        yaml.dump(
            data,
            f,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )
    return path


# ---------------------------------------------------------------------------
# Per-session context
# ---------------------------------------------------------------------------

@dataclass
class ReviewContext:
    """Who is reviewing, and which document they are working in."""

    reviewer_id: str
    document: BibDocument

    def __post_init__(self):
        # An empty id would match every review field
        if not self.reviewer_id or not self.reviewer_id.strip():
            raise ValueError("reviewer_id must not be empty")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReviewContext":
        return cls(
            reviewer_id=settings.reviewer_id,
            document=BibDocument.from_file(settings.bib_path),
        )
