from __future__ import annotations
import json
import logging
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path
from typing import Optional, List

logger = logging.getLogger(__name__)


@dataclass
class Config:
    last_loaded_file: Optional[str] = None
    default_load_folder: str = ""
    default_save_folder: str = ""
    config_folder: str = ""
    config_filename: str = "settings.json"
    # engine settings
    fit_tolerance: float = 1e-9    # absolute tolerance for "fit did not change"
    domain_padding: float = 0.1    # fraction of the data span added around reset views
    zoom_step: float = 1.25        # factor used by zoom in/out
    # recently opened files, newest first
    recent_files: List[str] = field(default_factory=list)
    max_recent_files: int = 10

    def __post_init__(self):
        # ensure folders are normalized strings
        self.default_load_folder = str(self.default_load_folder or "")
        self.default_save_folder = str(self.default_save_folder or "")
        self.config_folder = str(self.config_folder or "")
        self.fit_tolerance = abs(float(self.fit_tolerance))
        self.domain_padding = max(0.0, float(self.domain_padding))
        if float(self.zoom_step) <= 1.0:
            logger.warning("zoom_step must be > 1, got %r; using 1.25", self.zoom_step)
            self.zoom_step = 1.25
        self.zoom_step = float(self.zoom_step)

    @property
    def config_path(self) -> Path:
        return Path(self.config_folder) / self.config_filename

    def to_dict(self) -> dict:
        return asdict(self)

    def remember_file(self, path: str) -> None:
        path = str(path)
        self.last_loaded_file = path
        folder = str(Path(path).parent)
        if folder:
            self.default_load_folder = folder
        self.recent_files = [path] + [p for p in self.recent_files if p != path]
        del self.recent_files[self.max_recent_files:]

    def save(self) -> None:
        cfg_path = self.config_path
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = cfg_path.with_suffix(cfg_path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        tmp.replace(cfg_path)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        if path is None:
            raise ValueError("path must be provided for load()")
        path = Path(path)
        if not path.exists():
            # return default config with folder set
            return cls(config_folder=str(path.parent), config_filename=path.name)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            known = {f.name for f in fields(cls)} - {"config_folder", "config_filename"}
            kwargs = {k: v for k, v in data.items() if k in known}
            return cls(config_folder=str(path.parent), config_filename=path.name, **kwargs)
        except (OSError, ValueError, TypeError) as exc:
            # on parse error return defaults and keep config folder
            logger.warning("Could not read config %s: %s; using defaults", path, exc)
            return cls(config_folder=str(path.parent), config_filename=path.name)


# Module-level singleton accessor
_config_singleton: Optional[Config] = None


def _default_repo_config_folder() -> Path:
    # repo root is one level up from this file: .../dataio/configuration.py
    repo_root = Path(__file__).resolve().parent.parent
    return repo_root / "config"


def get_config(recreate: bool = False) -> Config:
    """
    Return a singleton Config instance.
    On first call the JSON file in the repo config folder is loaded (or created).
    Set recreate=True to reload from disk.
    """
    global _config_singleton
    if _config_singleton is not None and not recreate:
        return _config_singleton

    cfg_folder = _default_repo_config_folder()
    cfg_file = cfg_folder / "settings.json"
    if cfg_file.exists():
        cfg = Config.load(cfg_file)
    else:
        cfg = Config(
            last_loaded_file=None,
            default_load_folder=str(Path.home()),
            default_save_folder=str(Path.home()),
            config_folder=str(cfg_folder),
            config_filename="settings.json",
        )
        try:
            cfg.save()
        except OSError as exc:
            logger.warning("Could not create config file %s: %s", cfg_file, exc)
    _config_singleton = cfg
    return _config_singleton
