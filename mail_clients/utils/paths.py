"""Centralized path definitions for the mail clients.

All application files live under a single home directory, ``~/.mail_clients``
by default. Set ``MAIL_CLIENTS_HOME`` to relocate it (tests do this).
"""

import os
from pathlib import Path

# Base application directory
APP_DIR = Path(os.environ.get("MAIL_CLIENTS_HOME", Path.home() / ".mail_clients"))

# Subdirectories
LOGS_DIR = APP_DIR / "logs"

# Settings file, looked up in the working directory
DOTENV_PATH = Path.cwd() / ".env"
