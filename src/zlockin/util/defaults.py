# -*- coding: utf-8 -*-

import tempfile

DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"
TEMP_DIR = tempfile.gettempdir()
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line

DEFAULT_SAVE_DIR = "./zlockin_data/"
DEFAULT_CAPTURE_TIMEOUT = 1.0  # seconds
DEFAULT_POLL_INTERVAL = 0.001  # seconds
