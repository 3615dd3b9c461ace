from .data_loader import DataLoadError, load_data_from_file, load_data_from_text
from .data_saver import save_dataset, save_report
from .session_io import (
    SessionFormatError,
    export_session,
    import_session,
    save_session_file,
    load_session_file,
)

# Lazy wrapper to avoid importing configuration at package import time (prevents circular imports)
def get_config(*args, **kwargs):
    from .configuration import get_config as _get_config
    return _get_config(*args, **kwargs)

__all__ = [
    "DataLoadError",
    "load_data_from_file",
    "load_data_from_text",
    "save_dataset",
    "save_report",
    "SessionFormatError",
    "export_session",
    "import_session",
    "save_session_file",
    "load_session_file",
    "get_config",
]
