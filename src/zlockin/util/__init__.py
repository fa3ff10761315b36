# -*- coding: utf-8 -*-
"""
Utility functions and constants for zlockin.

- Logging configuration and management
- Saving and reloading measurement vectors
- Text progress indicator

Examples
--------
Logging a session to stderr:
```python
from zlockin.util import start_log
start_log(log_to_file=False, log_to_stdout=True, log_level="DEBUG")
```

See Also
--------
zlockin.util.logging : Logging configuration
zlockin.util.save : Data saving functions
"""

from .defaults import (
    DEFAULT_CAPTURE_TIMEOUT,
    DEFAULT_LOGLEVEL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SAVE_DIR,
    SINGLE_LINE_ERR_LOG,
    TEST_LOGLEVEL,
)
from .logging import (
    clear_log,
    format_error_response,
    get_log_filename,
    log_default_dir,
    log_default_path,
    shutdown_log,
    start_log,
)
from .progress import format_progress
from .save import load_measurement, load_measurement_config, save_measurement

__all__ = [
    "DEFAULT_CAPTURE_TIMEOUT",
    "DEFAULT_LOGLEVEL",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_SAVE_DIR",
    "SINGLE_LINE_ERR_LOG",
    "TEST_LOGLEVEL",
    "clear_log",
    "format_error_response",
    "get_log_filename",
    "log_default_dir",
    "log_default_path",
    "shutdown_log",
    "start_log",
    "format_progress",
    "load_measurement",
    "load_measurement_config",
    "save_measurement",
]
