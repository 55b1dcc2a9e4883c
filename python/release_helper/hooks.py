"""
Custom actions (hooks) executed at the pipeline checkpoints.

Hooks are held in an ordered list on the release settings. Each hook
exposes a single ``execute(settings)`` operation and receives the live
settings, which it may read and modify.
"""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from release_helper.exceptions import HookError
from release_helper.logging import get_logger

if TYPE_CHECKING:
    from release_helper.settings import ReleaseSettings

logger = get_logger(__name__)


class Checkpoint(str, Enum):
    """Pipeline points at which hooks run, in pipeline order."""

    BEFORE_VERSION_UPDATE = "BeforeVersionUpdate"
    BEFORE_PUBLISH = "BeforePublish"
    AFTER_PUBLISH = "AfterPublish"
    AFTER_ZIP = "AfterZip"


class Hook(ABC):
    """
    Abstract base class for custom actions.

    Attributes:
        name: Name used in log messages.
        checkpoint: Checkpoint at which the hook runs.
        stop_on_failure: Abort the whole pipeline when the hook raises.
    """

    def __init__(
        self,
        name: str,
        checkpoint: Checkpoint,
        stop_on_failure: bool = False,
    ) -> None:
        self.name = name
        self.checkpoint = checkpoint
        self.stop_on_failure = stop_on_failure

    @abstractmethod
    def execute(self, settings: ReleaseSettings) -> None:
        """
        Run the action.

        Raises:
            Exception: Any exception counts as a failure of the hook.
        """

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, "
            f"checkpoint={self.checkpoint.value}, stop_on_failure={self.stop_on_failure})"
        )


class CallbackHook(Hook):
    """Hook wrapping a Python callable that takes the release settings."""

    def __init__(
        self,
        name: str,
        checkpoint: Checkpoint,
        action: Callable[[ReleaseSettings], Any],
        stop_on_failure: bool = False,
    ) -> None:
        super().__init__(name, checkpoint, stop_on_failure)
        self.action = action

    def execute(self, settings: ReleaseSettings) -> None:
        self.action(settings)


class CommandHook(Hook):
    """
    Hook running an external command.

    Arguments may reference release settings with ``str.format`` fields,
    for example ``{version}`` or ``{zip_archive_destination}``. They are
    expanded when the hook runs, so they see values written by earlier steps.
    """

    def __init__(
        self,
        name: str,
        checkpoint: Checkpoint,
        command: Sequence[str],
        stop_on_failure: bool = False,
        working_directory: Path | None = None,
    ) -> None:
        super().__init__(name, checkpoint, stop_on_failure)
        self.command = list(command)
        self.working_directory = working_directory

    def render(self, settings: ReleaseSettings) -> list[str]:
        """Expand the command arguments against the settings."""
        values = settings.to_dict()
        return [argument.format_map(values) for argument in self.command]

    def execute(self, settings: ReleaseSettings) -> None:
        command = self.render(settings)
        logger.debug("hook_command_started", hook=self.name, command=command)

        result = subprocess.run(
            command,
            cwd=self.working_directory,
            capture_output=True,
            text=True,
            check=False,
        )
        for line in result.stdout.splitlines():
            if line.strip():
                logger.info("hook_output", hook=self.name, line=line)

        if result.returncode != 0:
            raise HookError.command_failed(self.name, command, result.returncode)


@dataclass
class HookRunResult:
    """
    Outcome of running the hooks of one checkpoint.

    Attributes:
        checkpoint: The checkpoint that was run.
        executed: Names of the hooks that were started, in order.
        failed: Names of the hooks that raised.
        aborted: True when a stop-on-failure hook failed.
    """

    checkpoint: Checkpoint
    executed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def should_continue(self) -> bool:
        """Check if the pipeline may proceed."""
        return not self.aborted


class HookExecutor:
    """Runs the hooks registered for a checkpoint and decides abort vs. continue."""

    def run(
        self,
        hooks: Sequence[Hook],
        checkpoint: Checkpoint,
        settings: ReleaseSettings,
    ) -> HookRunResult:
        """
        Execute every hook of ``checkpoint`` in list order.

        A failing hook with ``stop_on_failure`` stops the iteration and marks
        the result as aborted; other failures are logged and skipped.

        Args:
            hooks: All registered hooks; only matching ones run.
            checkpoint: Checkpoint being executed.
            settings: Live release settings handed to each hook.

        Returns:
            HookRunResult describing what ran.
        """
        result = HookRunResult(checkpoint=checkpoint)

        # Iterate over a snapshot; hooks may modify settings.custom_actions.
        for hook in tuple(hooks):
            if hook.checkpoint != checkpoint:
                continue

            result.executed.append(hook.name)
            logger.info("custom_action_started", hook=hook.name, checkpoint=checkpoint.value)

            try:
                hook.execute(settings)
            except Exception as e:
                result.failed.append(hook.name)
                error = e if isinstance(e, HookError) else HookError.action_failed(
                    hook.name, checkpoint.value, e
                )

                if hook.stop_on_failure:
                    logger.error(
                        "custom_action_failed_stopping",
                        **error.to_dict(),
                    )
                    result.aborted = True
                    return result

                logger.warning("custom_action_failed", **error.to_dict())
                continue

            logger.info("custom_action_done", hook=hook.name)

        return result
