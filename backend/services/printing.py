# backend/services/printing.py
import logging
import re
import subprocess
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

_JOB_RE = re.compile(r"request id is (\S+)")


class PrintDispatcher(Protocol):
    def print(self, path: str, printer: str) -> Optional[str]:
        """Returns the job id, or None when no job was created."""
        ...


class LpPrintDispatcher:
    """Wysyła PDF do drukarki przez polecenie CUPS `lp`."""

    def __init__(self, command: str = "lp", timeout: Optional[float] = None):
        self.command = command
        self.timeout = timeout

    def print(self, path: str, printer: str) -> Optional[str]:
        try:
            result = subprocess.run(
                [self.command, "-d", printer, path],
                capture_output=True, text=True, timeout=self.timeout, check=False,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
            logger.warning("print dispatch to %s failed: %s", printer, exc)
            return None

        if result.returncode != 0:
            logger.warning("lp exited with %s: %s", result.returncode, result.stderr.strip())
            return None

        match = _JOB_RE.search(result.stdout or "")
        if match is None:
            logger.warning("no print job created for %s", printer)
            return None
        return match.group(1)
