"""
Release pipeline orchestration.

A release run walks a fixed, linear sequence of states::

    START -> HOOK_BEFORE_VERSION_UPDATE -> VERSION_UPDATE -> CLEAN_BIN
          -> HOOK_BEFORE_PUBLISH -> BUILD -> HOOK_AFTER_PUBLISH
          -> ARCHIVE -> HOOK_AFTER_ZIP -> DONE

Hook states and VERSION_UPDATE may end the run in ABORTED. CLEAN_BIN,
BUILD and ARCHIVE are best effort: their failures are logged and the run
continues. CLEAN_BIN, ARCHIVE and HOOK_AFTER_ZIP are skipped when the
corresponding settings are off.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from release_helper.config import Config, get_config
from release_helper.descriptor import DescriptorEditor
from release_helper.exceptions import ReleaseHelperError
from release_helper.hooks import Checkpoint, HookExecutor
from release_helper.logging import get_logger, setup_logging, with_context
from release_helper.packaging.archive import Archiver, archive_file_name
from release_helper.packaging.build import BuildInvoker
from release_helper.packaging.cleaner import clean_directory
from release_helper.packaging.locator import ReleaseLocator
from release_helper.settings import ReleaseSettings

logger = get_logger(__name__)


class PipelineState(str, Enum):
    """States of a release run."""

    START = "start"
    HOOK_BEFORE_VERSION_UPDATE = "hook_before_version_update"
    VERSION_UPDATE = "version_update"
    CLEAN_BIN = "clean_bin"
    HOOK_BEFORE_PUBLISH = "hook_before_publish"
    BUILD = "build"
    HOOK_AFTER_PUBLISH = "hook_after_publish"
    ARCHIVE = "archive"
    HOOK_AFTER_ZIP = "hook_after_zip"
    DONE = "done"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        """Check if the state ends a run."""
        return self in (PipelineState.DONE, PipelineState.ABORTED)


_HOOK_STATES: dict[Checkpoint, PipelineState] = {
    Checkpoint.BEFORE_VERSION_UPDATE: PipelineState.HOOK_BEFORE_VERSION_UPDATE,
    Checkpoint.BEFORE_PUBLISH: PipelineState.HOOK_BEFORE_PUBLISH,
    Checkpoint.AFTER_PUBLISH: PipelineState.HOOK_AFTER_PUBLISH,
    Checkpoint.AFTER_ZIP: PipelineState.HOOK_AFTER_ZIP,
}


class ReleaseHelper:
    """
    Creates releases: version bump, publish, archive, with custom actions.

    Example:
        helper = ReleaseHelper(min_log_level="DEBUG")
        ok = helper.create_release(settings)
    """

    def __init__(
        self,
        config: Config | None = None,
        min_log_level: str | None = None,
        configure_logging: bool = True,
    ) -> None:
        """
        Initialize the release helper.

        Args:
            config: Tool configuration. Defaults to the global configuration.
            min_log_level: Minimum log level; defaults to the configured level.
            configure_logging: Set up logging sinks on construction.
        """
        self.config = config or get_config()
        if configure_logging:
            setup_logging(
                level=min_log_level or self.config.logging.level,
                format=self.config.logging.format,
                log_file=self.config.logging.file,
            )

        self._hooks = HookExecutor()
        self._builder = BuildInvoker(self.config.build)
        self._archiver = Archiver(ReleaseLocator(self.config.locator))
        self._history: list[PipelineState] = []

    @property
    def history(self) -> list[PipelineState]:
        """States visited by the last run, in order."""
        return list(self._history)

    @property
    def state(self) -> PipelineState | None:
        """Current (or final) state of the last run."""
        return self._history[-1] if self._history else None

    def _enter(self, state: PipelineState) -> None:
        self._history.append(state)
        logger.debug("pipeline_state", state=state.value)

    def create_release(self, settings: ReleaseSettings) -> bool:
        """
        Run the release pipeline.

        Args:
            settings: Release settings; ``version`` and
                ``zip_archive_destination`` are written back.

        Returns:
            True when the run reached DONE, False when it was aborted.
        """
        self._history = []
        release = Path(settings.project_file).name if settings.project_file else ""

        with with_context(release=release):
            self._enter(PipelineState.START)
            logger.info("release_started")
            try:
                final_state = self._run(settings)
            except Exception as e:
                details = e.to_dict() if isinstance(e, ReleaseHelperError) else {"error": str(e)}
                logger.error("release_failed_unexpectedly", exc_info=True, **details)
                final_state = PipelineState.ABORTED
            finally:
                logger.info("release_process_done")

            if self.state != final_state:
                self._enter(final_state)
        return final_state == PipelineState.DONE

    def _run_hooks(self, checkpoint: Checkpoint, settings: ReleaseSettings) -> bool:
        self._enter(_HOOK_STATES[checkpoint])
        result = self._hooks.run(settings.custom_actions, checkpoint, settings)
        return result.should_continue

    def _run(self, settings: ReleaseSettings) -> PipelineState:
        if not self._run_hooks(Checkpoint.BEFORE_VERSION_UPDATE, settings):
            return PipelineState.ABORTED

        if not self._update_version(settings):
            return PipelineState.ABORTED

        if settings.clean_bin:
            self._clean_bin(settings)

        if not self._run_hooks(Checkpoint.BEFORE_PUBLISH, settings):
            return PipelineState.ABORTED

        self._enter(PipelineState.BUILD)
        self._builder.publish(settings.solution_file, settings.publish_profile_file)

        if not self._run_hooks(Checkpoint.AFTER_PUBLISH, settings):
            return PipelineState.ABORTED

        if not settings.create_zip_archive:
            logger.info("release_done")
            return PipelineState.DONE

        self._archive(settings)

        if not self._run_hooks(Checkpoint.AFTER_ZIP, settings):
            return PipelineState.ABORTED

        logger.info("release_done")
        return PipelineState.DONE

    def _update_version(self, settings: ReleaseSettings) -> bool:
        self._enter(PipelineState.VERSION_UPDATE)
        logger.info("updating_version", version_type=settings.version_type.value)

        if settings.project_file is None:
            logger.error("version_update_failed", reason="project file not set")
            return False

        try:
            DescriptorEditor(settings.project_file).update_version(settings)
        except ReleaseHelperError as e:
            logger.error("version_update_failed", **e.to_dict())
            return False
        return True

    def _clean_bin(self, settings: ReleaseSettings) -> None:
        self._enter(PipelineState.CLEAN_BIN)
        logger.info("cleaning_bin_directory", path=str(settings.bin_dir))

        try:
            clean_directory(settings.bin_dir)
        except OSError as e:
            logger.error("clean_bin_failed", path=str(settings.bin_dir), error=str(e))

    def _archive(self, settings: ReleaseSettings) -> None:
        self._enter(PipelineState.ARCHIVE)

        if settings.bin_dir is None:
            logger.warning("zip_skipped", reason="bin directory not set")
            return

        solution_name = Path(settings.solution_file).stem if settings.solution_file else ""
        name = settings.zip_archive_name.strip() or solution_name or "release"
        file_name = archive_file_name(
            name, settings.version, settings.attach_version_to_zip_archive_name
        )
        destination_dir = settings.zip_archive_destination or settings.bin_dir
        zip_file = Path(destination_dir) / file_name
        settings.zip_archive_destination = zip_file

        try:
            self._archiver.create(settings.bin_dir, zip_file, settings.zip_compression_level)
        except ReleaseHelperError as e:
            logger.warning("zip_failed", **e.to_dict())
        except OSError as e:
            logger.warning("zip_failed", path=str(zip_file), error=str(e))


def create_release(settings: ReleaseSettings, config: Config | None = None) -> bool:
    """Run the release pipeline with a new ReleaseHelper."""
    return ReleaseHelper(config=config).create_release(settings)
