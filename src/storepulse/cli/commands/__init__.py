# storepulse/cli/commands: Command modules for the storepulse CLI.
#
# Each module in this package provides one or more CLI commands.

from .fetch import fetch_app
from .status import status

__all__ = [
    # fetch.py
    "fetch_app",
    # status.py
    "status",
]
