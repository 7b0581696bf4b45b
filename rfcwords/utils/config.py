"""
Configuration management for the word statistics pipeline.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field


DEFAULT_URL_TEMPLATE = "https://tools.ietf.org/rfc/rfc{number}.txt"


@dataclass
class PipelineConfig:
    """Configuration for the worker pool and its channels."""
    num_workers: int = 10
    job_queue_size: int = 10
    result_queue_size: int = 10


@dataclass
class FetcherConfig:
    """Configuration for document fetching."""
    user_agent: str = "rfcwords/1.0"
    request_timeout: float = 5.0
    max_content_size: int = 10 * 1024 * 1024
    strip_html: bool = True


@dataclass
class DocumentsConfig:
    """Configuration for the documents to process."""
    url_template: str = DEFAULT_URL_TEMPLATE
    first: int = 1
    last: int = 10


@dataclass
class ReportConfig:
    """Configuration for the final report."""
    global_top_n: int = 10


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/rfcwords.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Config:
    """Main configuration class."""
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    fetcher: FetcherConfig = field(default_factory=FetcherConfig)
    documents: DocumentsConfig = field(default_factory=DocumentsConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as file:
            try:
                config_data = yaml.safe_load(file) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Malformed YAML in {self.config_path}: {e}") from e

        self._config = config_from_dict(config_data)
        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ValueError("Configuration not loaded")
        validate_config(self._config)

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def config_from_dict(config_data: Dict[str, Any]) -> Config:
    """Build a Config from parsed YAML, falling back to defaults for missing sections."""
    if not isinstance(config_data, dict):
        raise ValueError("Configuration root must be a mapping")

    return Config(
        pipeline=PipelineConfig(**(config_data.get('pipeline') or {})),
        fetcher=FetcherConfig(**(config_data.get('fetcher') or {})),
        documents=DocumentsConfig(**(config_data.get('documents') or {})),
        report=ReportConfig(**(config_data.get('report') or {})),
        logging=LoggingConfig(**(config_data.get('logging') or {}))
    )


def validate_config(config: Config):
    """Validate configuration values, raising ValueError on the first problem."""
    # Validate pipeline sizing
    if config.pipeline.num_workers < 1:
        raise ValueError("num_workers must be at least 1")

    if config.pipeline.job_queue_size < 1 or config.pipeline.result_queue_size < 1:
        raise ValueError("queue sizes must be at least 1")

    if config.fetcher.request_timeout <= 0:
        raise ValueError("request_timeout must be positive")

    if config.fetcher.max_content_size < 1:
        raise ValueError("max_content_size must be at least 1")

    # Validate document range
    if '{number}' not in config.documents.url_template:
        raise ValueError("url_template must contain a '{number}' placeholder")

    if config.documents.first < 0:
        raise ValueError("first must be non-negative")

    if config.documents.first > config.documents.last:
        raise ValueError("first must not be greater than last")

    if config.report.global_top_n < 0:
        raise ValueError("global_top_n must be non-negative")

    logging.getLogger(__name__).info("Configuration validation passed")


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config_manager.config


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from file."""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager.load_config()
