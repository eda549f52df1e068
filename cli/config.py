"""Configuration management for the hookfs CLI."""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from common.constants import (
    DEFAULT_ATTACHMENT_BASE_URL,
    DEFAULT_DATA_FILE,
    DEFAULT_TIMEOUT_SECONDS,
    FETCH_RETRY_DELAY_SECONDS,
    UPLOAD_RETRY_DELAY_SECONDS,
)

logger = logging.getLogger(__name__)


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "webhook_url": "",
        "data_file": DEFAULT_DATA_FILE,
        "timeout": DEFAULT_TIMEOUT_SECONDS,
        "upload_retry_delay": UPLOAD_RETRY_DELAY_SECONDS,
        "fetch_retry_delay": FETCH_RETRY_DELAY_SECONDS,
        "max_retries": None,
        "encryption_key": None,
        "encryption_iv": None,
        "attachment_base_url": DEFAULT_ATTACHMENT_BASE_URL,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.hookfs/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.hookfs' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Config file {self.config_path} is unreadable, using defaults: {e}")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError as copy_error:
                    logger.warning(f"Could not back up config file: {copy_error}")
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except OSError as e:
                logger.warning(f"Could not write default config file: {e}")
            return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save config file: {e}")

    def get_webhook_url(self) -> str:
        """
        Get the webhook URL. The HOOKFS_WEBHOOK environment variable wins over the file.

        Returns:
            Webhook URL string (empty when not configured)
        """
        return os.environ.get("HOOKFS_WEBHOOK") or self.data.get('webhook_url') or ""

    def get_data_file(self) -> Path:
        """
        Get the local data file path. The HOOKFS_DATA_FILE environment variable wins over the file.

        Returns:
            Path of the namespace snapshot file
        """
        data_file = os.environ.get("HOOKFS_DATA_FILE") or self.data.get('data_file') or DEFAULT_DATA_FILE
        return Path(data_file).expanduser()

    def get_timeout(self) -> int:
        """
        Get request timeout in seconds.

        Returns:
            Timeout value in seconds
        """
        return self.data.get('timeout', DEFAULT_TIMEOUT_SECONDS)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' (None = retry forever),
            'upload_retry_delay' and 'fetch_retry_delay'
        """
        return {
            'max_retries': self.data.get('max_retries'),
            'upload_retry_delay': self.data.get('upload_retry_delay', UPLOAD_RETRY_DELAY_SECONDS),
            'fetch_retry_delay': self.data.get('fetch_retry_delay', FETCH_RETRY_DELAY_SECONDS),
        }

    def get_encryption_material(self) -> Tuple[Optional[str], Optional[str]]:
        """
        Get hex-encoded encryption key and IV.

        Returns:
            Tuple of (key_hex, iv_hex); either may be None
        """
        return self.data.get('encryption_key'), self.data.get('encryption_iv')

    def get_attachment_base_url(self) -> str:
        return self.data.get('attachment_base_url') or DEFAULT_ATTACHMENT_BASE_URL
