"""
srasubmit startup initialization.

Orchestrates initialization of all components in the correct order:
1. Config (with validation)
2. Logging
3. Submission store
"""

import os
from pathlib import Path

import yaml

from srasubmit.config.loader import Config, load_config
from srasubmit.dispatch.driver import TransferDriver
from srasubmit.dispatch.scheduler import DispatchScheduler
from srasubmit.exceptions import InitializationError, SubmitError
from srasubmit.ingest.coordinator import IngestCoordinator
from srasubmit.ingest.extractor import ArchiveExtractor
from srasubmit.store import DuckDBSubmissionStore
from srasubmit.transfer import TransferSettings
from srasubmit.utils.logging import setup_logging_from_config


class SubmitInitializer:
    """Handles complete initialization of a srasubmit project."""

    def __init__(self, project_dir: Path, env: str | None = None):
        self.project_dir = Path(project_dir)
        self.env = env or os.environ.get("SRASUBMIT_ENV", "dev")

        self.config: Config | None = None
        self.store: DuckDBSubmissionStore | None = None

    def initialize_all(self) -> tuple[Config, DuckDBSubmissionStore]:
        """
        Initialize all components in the correct order.

        Returns:
            Tuple of (config, store)

        Raises:
            InitializationError: If any initialization step fails
        """
        self.config = self._initialize_config()
        self._initialize_logging()
        self.store = self._initialize_store()
        return self.config, self.store

    def _initialize_config(self) -> Config:
        """Initialize and validate configuration."""
        try:
            config = load_config(self.project_dir, env=self.env)
            config.validate()

            config.data["_env"] = self.env
            config.data["_project_dir"] = self.project_dir
            return config
        except (FileNotFoundError, PermissionError, ValueError, yaml.YAMLError) as e:
            raise InitializationError(str(e)) from None
        except SubmitError:
            raise
        except Exception as e:
            raise InitializationError(f"Unexpected error loading config: {e}") from None

    def _initialize_logging(self) -> None:
        try:
            setup_logging_from_config(self.config.data, project_dir=self.project_dir)
        except (OSError, ValueError, TypeError) as e:
            raise InitializationError(f"Failed to initialize logging: {e}") from None

    def _initialize_store(self) -> DuckDBSubmissionStore:
        path = self.config.state_path
        if path != ":memory:" and not Path(path).is_absolute():
            path = str(self.project_dir / path)
        store = DuckDBSubmissionStore(path)
        try:
            # Open eagerly: a bad path fails at startup
            store.list_all()
        except SubmitError as e:
            raise InitializationError(f"Failed to initialize submission store: {e.message}") from None
        return store


def initialize(project_dir: Path, env: str | None = None) -> tuple[Config, DuckDBSubmissionStore]:
    """
    Initialize a srasubmit project.

    Args:
        project_dir: Project directory containing config.yaml
        env: Environment name (defaults to $SRASUBMIT_ENV, then "dev")

    Returns:
        Tuple of (config, store)
    """
    return SubmitInitializer(project_dir, env=env).initialize_all()


def _staging_root(config: Config) -> Path:
    staging = config.staging_dir
    project_dir = config.data.get("_project_dir")
    if project_dir is not None and not staging.is_absolute():
        staging = Path(project_dir) / staging
    return staging


def build_coordinator(config: Config, store: DuckDBSubmissionStore) -> IngestCoordinator:
    return IngestCoordinator(
        store,
        _staging_root(config),
        extractor=ArchiveExtractor(config.accepted_suffixes),
        app_url=str(config.get("app_url", "") or ""),
    )


def build_driver(config: Config, store: DuckDBSubmissionStore) -> TransferDriver:
    return TransferDriver(store, TransferSettings.from_config(config.transfer))


def build_scheduler(config: Config, store: DuckDBSubmissionStore) -> DispatchScheduler:
    return DispatchScheduler(
        store,
        build_driver(config, store),
        every_s=config.dispatch_interval_s,
        initial_delay_s=config.dispatch_initial_delay_s,
    )
