#!/usr/bin/env python3
"""
Main entry point for the word statistics pipeline.
"""

import asyncio
import argparse
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from rfcwords import __version__
from rfcwords.utils.config import load_config, validate_config, Config
from rfcwords.utils.logger import setup_logging, log_system_info
from rfcwords.pipeline.documents import urls_from_config
from rfcwords.pipeline.orchestrator import PipelineOrchestrator


class WordStatsApp:
    """Main application class for the word statistics pipeline."""

    def __init__(self):
        self.orchestrator: Optional[PipelineOrchestrator] = None
        self.logger = logging.getLogger(__name__)

    def apply_overrides(self, config: Config, workers: Optional[int] = None,
                        first: Optional[int] = None, last: Optional[int] = None,
                        top: Optional[int] = None) -> Config:
        """Apply command line overrides and re-validate."""
        if workers is not None:
            config.pipeline.num_workers = workers
        if first is not None:
            config.documents.first = first
        if last is not None:
            config.documents.last = last
        if top is not None:
            config.report.global_top_n = top
        validate_config(config)
        return config

    async def run(self, config: Config, json_logs: bool = False) -> int:
        """Run the pipeline once."""
        setup_logging(asdict(config.logging), enable_json=json_logs)
        log_system_info()

        try:
            self.logger.info("=== WORD STATISTICS STARTING ===")
            self.logger.info(f"Documents: {config.documents.first}..{config.documents.last}")
            self.logger.info(f"URL template: {config.documents.url_template}")
            self.logger.info(f"Workers: {config.pipeline.num_workers}")
            self.logger.info(f"Request timeout: {config.fetcher.request_timeout}s")

            identifiers = urls_from_config(config.documents)
            self.orchestrator = PipelineOrchestrator(config)
            summary = await self.orchestrator.run(identifiers)
            self.logger.info(f"Run stats: {self.orchestrator.get_stats(summary)}")

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            self.logger.info("=== WORD STATISTICS FINISHED ===")

        return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Concurrent long-word statistics over a range of RFC documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                           # Run with default config.yaml
  python main.py --config my_config.yaml   # Run with custom config
  python main.py --first 1 --last 50       # Process RFC 1 to RFC 50
  python main.py --workers 4 --top 20      # 4 workers, report top 20 words
        """
    )

    parser.add_argument(
        '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )

    parser.add_argument(
        '--workers',
        type=int,
        help='Number of concurrent workers'
    )

    parser.add_argument(
        '--first',
        type=int,
        help='First document number'
    )

    parser.add_argument(
        '--last',
        type=int,
        help='Last document number'
    )

    parser.add_argument(
        '--top',
        type=int,
        help='Number of overall top words to report (0 disables)'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit logs as JSON'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'rfcwords {__version__}'
    )

    args = parser.parse_args()

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.")
        print("Please create a config.yaml file or specify a different path with --config")
        return 1

    app = WordStatsApp()
    try:
        config = app.apply_overrides(
            load_config(args.config),
            workers=args.workers,
            first=args.first,
            last=args.last,
            top=args.top
        )
    except (ValueError, TypeError) as e:
        print(f"Error: Invalid configuration: {e}")
        return 1

    try:
        return asyncio.run(app.run(config, json_logs=args.json_logs))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1
    except Exception as e:
        print(f"Fatal error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
