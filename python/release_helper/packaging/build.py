"""
Invocation of the external publish tool.

The publish tool (``dotnet publish`` by default) runs as a child process;
its standard output is streamed line by line into the log while the
caller blocks until the process exits.

Failures never raise: they are logged and reported in the BuildResult so
the pipeline can continue on a best-effort basis.
"""

from __future__ import annotations

import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from release_helper.config import BuildConfig
from release_helper.exceptions import BuildError

logger = structlog.get_logger(__name__)


@dataclass
class BuildResult:
    """
    Result of a publish run.

    Attributes:
        command: Full command line that was executed.
        returncode: Exit code, None when the tool could not be started.
        output_lines: Number of non-blank output lines streamed to the log.
        timed_out: The process was killed after the configured timeout.
        error: Error describing the failure, None on success.
    """

    command: list[str]
    returncode: int | None = None
    output_lines: int = 0
    timed_out: bool = False
    error: BuildError | None = field(default=None, repr=False)

    @property
    def is_success(self) -> bool:
        """Check if the publish tool exited cleanly."""
        return self.error is None and self.returncode == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "command": self.command,
            "returncode": self.returncode,
            "output_lines": self.output_lines,
            "timed_out": self.timed_out,
            "error": self.error.to_dict() if self.error else None,
        }


class BuildInvoker:
    """
    Runs the publish tool for a solution.

    Attributes:
        config: Publish tool configuration.
    """

    def __init__(self, config: BuildConfig | None = None) -> None:
        self.config = config or BuildConfig()

    def build_command(self, solution_file: Path, publish_profile_file: Path | None = None) -> list[str]:
        """
        Assemble the publish command line.

        The profile argument is only added when the profile file exists.
        """
        command = [*self.config.command, self.config.publish_verb, str(solution_file)]
        if publish_profile_file is not None and Path(publish_profile_file).is_file():
            command.append(self.config.profile_argument.format(profile=publish_profile_file))
        return command

    def publish(self, solution_file: Path, publish_profile_file: Path | None = None) -> BuildResult:
        """
        Run the publish tool and wait for it to finish.

        Args:
            solution_file: Solution handed to the tool.
            publish_profile_file: Optional publish profile.

        Returns:
            BuildResult; failures are logged as errors, never raised.
        """
        command = self.build_command(solution_file, publish_profile_file)
        result = BuildResult(command=command)
        logger.info("release_build_started", command=command)

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            result.error = BuildError.launch_failed(command, e)
            logger.error("release_build_failed", **result.error.to_dict())
            return result

        timer: threading.Timer | None = None
        if self.config.timeout_seconds is not None:
            timer = threading.Timer(self.config.timeout_seconds, self._kill, args=(process, result))
            timer.daemon = True
            timer.start()

        try:
            for line in process.stdout or ():
                line = line.rstrip("\r\n")
                if line.strip():
                    result.output_lines += 1
                    logger.info("build_output", line=line)
            result.returncode = process.wait()
        finally:
            if timer is not None:
                timer.cancel()
            if process.stdout is not None:
                process.stdout.close()

        logger.debug("process_done", returncode=result.returncode)

        if result.timed_out:
            result.error = BuildError.timeout(command, self.config.timeout_seconds or 0)
        elif result.returncode != 0:
            result.error = BuildError.exit_code(command, result.returncode)

        if result.error is not None:
            logger.error("release_build_failed", **result.error.to_dict())
        else:
            logger.info("release_build_finished", output_lines=result.output_lines)

        return result

    @staticmethod
    def _kill(process: subprocess.Popen[str], result: BuildResult) -> None:
        if process.poll() is None:
            result.timed_out = True
            logger.warning("release_build_timeout", pid=process.pid)
            process.kill()
