"""
Main entry point for the station network collector.

Runs one collection cycle and persists the snapshot and station registry.
"""

import sys
from pathlib import Path
from typing import Optional

from .core import Config, setup_logger, LoggerContext
from .engine import CollectionEngine
from .models import WeatherSnapshot
from .services import SnapshotWriter, StationRegistry


class StationNetworkApp:
    """Main application for station network collection."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        registry_path: Optional[str] = None,
        output_dir: Optional[str] = None
    ):
        """
        Initialize application.

        Args:
            config_file: Path to configuration file
            registry_path: Override for the persisted registry location
            output_dir: Override for the snapshot output directory
        """
        # Load configuration
        self.config = Config(config_file)

        storage = self.config.config.setdefault("storage", {})
        if registry_path:
            storage["registry_path"] = registry_path
        if output_dir:
            storage["output_dir"] = output_dir

        # Setup logger
        self.logger = setup_logger(log_level=self.config.get("logging.level"))
        self.logger.info("=" * 60)
        self.logger.info("Station Network Collector")
        self.logger.info("=" * 60)
        self.logger.info(f"Configuration: {self.config}")

        self.registry = StationRegistry(self.logger)
        self.engine: Optional[CollectionEngine] = None
        self.writer = SnapshotWriter(self.config.output_dir, self.logger)

    def load_registry(self) -> int:
        """Reload the persisted registry if there is one."""
        path = Path(self.config.registry_path)
        if not path.exists():
            self.logger.info(f"No saved registry at {path}, starting empty")
            return 0

        try:
            return self.registry.load(str(path))
        except ValueError as e:
            self.logger.warning(f"Ignoring unreadable registry {path}: {e}")
            return 0

    def run(self) -> WeatherSnapshot:
        """
        Run one collection cycle and persist its results.

        Returns:
            The collected snapshot
        """
        try:
            with LoggerContext(self.logger, "registry load"):
                self.load_registry()

            self.engine = CollectionEngine(self.config, self.registry, logger=self.logger)
            snapshot = self.engine.collect()

            self.writer.save(snapshot)
            self.writer.save_statistics(snapshot, self.registry.statistics())
            self.registry.save(self.config.registry_path)

            self.logger.info("Processing complete")
            return snapshot

        except Exception as e:
            self.logger.error(f"Application error: {e}", exc_info=True)
            raise

        finally:
            if self.engine:
                self.engine.close()


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Station Network Collector"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--registry",
        type=str,
        default=None,
        help="Path to the persisted station registry"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for snapshot files"
    )

    args = parser.parse_args()

    # Run application
    try:
        app = StationNetworkApp(
            config_file=args.config,
            registry_path=args.registry,
            output_dir=args.output_dir,
        )
        snapshot = app.run()
    except Exception as e:
        print(f"Application failed: {e}")
        sys.exit(1)

    if snapshot.all_endpoints_failed:
        print("All endpoints failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
