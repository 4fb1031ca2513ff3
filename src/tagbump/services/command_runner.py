"""Subprocess execution service for tagbump."""

import os
import subprocess
import time
from typing import Dict, List, Optional

from tagbump.errors import CommandError, UpdaterError
from tagbump.models import redact_url_credentials


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger, default_timeout: Optional[float] = None, subprocess_module=subprocess):
        self.logger = logger
        self.default_timeout = default_timeout
        self.subprocess = subprocess_module

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = True,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        attempts: int = 1,
        retry_delay_seconds: float = 0.0,
    ) -> subprocess.CompletedProcess:
        cmd_str = redact_url_credentials(" ".join(cmd))
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout
        max_attempts = max(1, attempts)
        run_env = None
        if env:
            run_env = dict(os.environ)
            run_env.update(env)

        for attempt in range(1, max_attempts + 1):
            try:
                result = self.subprocess.run(
                    cmd,
                    text=True,
                    capture_output=capture_output,
                    cwd=cwd,
                    env=run_env,
                    timeout=effective_timeout,
                )
            except FileNotFoundError as exc:
                raise UpdaterError(
                    f"Required command not found: {cmd[0]}. Please install it and try again."
                ) from exc
            except subprocess.TimeoutExpired as exc:
                if attempt < max_attempts:
                    self.logger.warning(
                        "Attempt %s/%s timed out. Retrying in %.1fs: %s",
                        attempt,
                        max_attempts,
                        retry_delay_seconds,
                        cmd_str,
                    )
                    time.sleep(retry_delay_seconds)
                    continue
                raise CommandError(f"Command timed out after {effective_timeout}s: {cmd_str}") from exc

            if capture_output and result.stdout:
                self.logger.debug("Command output: %s", redact_url_credentials(result.stdout.strip()))

            if result.returncode == 0:
                return result

            stderr = redact_url_credentials((result.stderr or "").strip()) if capture_output else ""
            message = f"Command failed ({result.returncode}): {cmd_str}"
            if stderr:
                message = f"{message}\n{stderr}"

            if attempt < max_attempts:
                self.logger.warning(
                    "Attempt %s/%s failed, retrying in %.1fs. Error: %s",
                    attempt,
                    max_attempts,
                    retry_delay_seconds,
                    message,
                )
                time.sleep(retry_delay_seconds)
                continue

            if check:
                raise CommandError(message, returncode=result.returncode, stderr=stderr)

            self.logger.warning(message)
            return result

        raise CommandError(f"Command failed after retries: {cmd_str}")
