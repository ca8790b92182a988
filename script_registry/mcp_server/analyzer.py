from pathlib import Path
from typing import Optional, Dict, Any
import asyncio
import logging
from enum import Enum

import watchdog.observers
from watchdog.events import FileSystemEventHandler

from script_registry.core.config import RegistryConfig
from script_registry.core.registry_query import RegistryQuery
from script_registry.core.report import GenerationResult, generate


class AnalysisState(Enum):
    """Enum representing the current state of registry generation."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class SourceWatcherHandler(FileSystemEventHandler):
    """Rebuilds the registry when the watched declaration file changes."""

    def __init__(self, analyzer):
        self.analyzer = analyzer

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(event.src_path).resolve() != self.analyzer.source_path:
            return

        logging.info(f"Source file modified: {event.src_path}")
        loop = getattr(self.analyzer, "loop", None)
        if not loop or loop.is_closed() or not loop.is_running():
            logging.debug("Skipping rebuild: event loop is not available")
            return
        asyncio.run_coroutine_threadsafe(self.analyzer.refresh(), loop)


class RegistryAnalyzer:
    """Builds and holds the registry served by the MCP tools."""

    def __init__(self, config: RegistryConfig, watch: bool = True):
        """Initialize the analyzer with configuration.

        Args:
            config: Registry configuration; ``source_file`` must be set
            watch: Rebuild automatically when the source file changes
        """
        if not config.source_file:
            raise ValueError("source_file is required; set it in registry.config.yaml")
        self.config = config
        self.source_path = Path(config.source_file).resolve()
        self.watch = watch
        self.observer = None
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        logging.info(f"Initializing RegistryAnalyzer for {self.source_path}")

        self.result: Optional[GenerationResult] = None
        self.query: Optional[RegistryQuery] = None
        self.build_count = 0

        # Analysis state tracking
        self.analysis_state = AnalysisState.NOT_STARTED
        self.analysis_task: Optional[asyncio.Task] = None
        self.analysis_error: Optional[Exception] = None
        self._rebuild_lock = asyncio.Lock()

    def is_ready(self) -> bool:
        """Check if a registry is available for queries."""
        return self.analysis_state == AnalysisState.COMPLETED and self.result is not None

    async def wait_for_analysis(self, timeout: Optional[float] = None) -> bool:
        """Wait for the initial build to complete.

        Args:
            timeout: Maximum time to wait in seconds (None = wait indefinitely)

        Returns:
            True if the build completed successfully, False if timeout or failed
        """
        if self.analysis_state == AnalysisState.COMPLETED:
            return True

        if self.analysis_task is None:
            return False

        try:
            await asyncio.wait_for(asyncio.shield(self.analysis_task), timeout=timeout)
            return self.analysis_state == AnalysisState.COMPLETED
        except asyncio.TimeoutError:
            return False

    async def start_analysis(self) -> None:
        """Start registry generation in the background.

        The server becomes available immediately; tools report that the
        registry is still building until the task finishes.
        """
        if self.analysis_state != AnalysisState.NOT_STARTED:
            logging.warning(f"Analysis already started (state: {self.analysis_state.value})")
            return

        async def run_analysis():
            try:
                self.analysis_state = AnalysisState.IN_PROGRESS
                logging.info("Background registry build started")
                await self.analyze()
                self.analysis_state = AnalysisState.COMPLETED
                logging.info(
                    f"Background registry build completed: "
                    f"{self.result.registry.metadata.total_elements} elements"
                )
            except Exception as e:
                self.analysis_state = AnalysisState.FAILED
                self.analysis_error = e
                logging.error(f"Background registry build failed: {e}", exc_info=True)

        self.analysis_task = asyncio.create_task(run_analysis())
        logging.info("Registry build task started in background")

    async def analyze(self) -> None:
        """Build the registry, then start watching the source file."""
        await self.rebuild()

        if self.watch and self.observer is None:
            self.loop = asyncio.get_running_loop()
            observer = watchdog.observers.Observer()
            observer.schedule(SourceWatcherHandler(analyzer=self), str(self.source_path.parent), recursive=False)
            observer.start()
            self.observer = observer
            logging.info(f"Started watching {self.source_path}")

    async def rebuild(self) -> None:
        """Generate a fresh registry and swap it in; the previous one is never mutated."""
        async with self._rebuild_lock:
            result = await asyncio.to_thread(generate, self.source_path, self.config)
            self.result = result
            self.query = RegistryQuery(result.registry)
            self.build_count += 1
            self.analysis_error = None
            logging.info(
                f"Registry build #{self.build_count}: "
                f"{result.registry.metadata.total_elements} elements from {self.source_path}"
            )

    async def refresh(self) -> bool:
        """Rebuild after a source change, keeping the current registry if the rebuild fails.

        Returns:
            True if a new registry was swapped in
        """
        try:
            await self.rebuild()
            return True
        except Exception as e:
            self.analysis_error = e
            logging.error(f"Registry rebuild failed, still serving build #{self.build_count}: {e}", exc_info=True)
            return False

    def status(self) -> Dict[str, Any]:
        status: Dict[str, Any] = {
            "state": self.analysis_state.value,
            "source_file": str(self.source_path),
            "build_count": self.build_count,
        }
        if self.analysis_error:
            status["error"] = str(self.analysis_error)
        if self.result:
            status["total_elements"] = self.result.registry.metadata.total_elements
            status["modules"] = list(self.result.registry.modules.keys())
        return status

    def shutdown(self) -> None:
        """Stop the file watcher."""
        if self.observer:
            self.observer.stop()
            self.observer.join()
            self.observer = None
