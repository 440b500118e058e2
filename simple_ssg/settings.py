#!/usr/bin/env python3
"""
Settings loader for simple-ssg.
Supports configuration from simple-ssg.yml, simple-ssg.yaml, or simple-ssg.json files.
"""

import os
import json
import logging
import yaml
from typing import Dict, Any, Optional

from .errors import ConfigError
from .models import DEFAULT_WEB_PREFIX


class SsgSettings:
    """Load and manage simple-ssg configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'output': None,
        'clean': False,
        'web_prefix': DEFAULT_WEB_PREFIX,
        'template': None,
        'logs': None,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['simple-ssg.yml', 'simple-ssg.yaml', 'simple-ssg.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None
        self.logger = logging.getLogger('SimpleSsg.Settings')

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings

        Raises:
            ConfigError: the configuration file exists but cannot be used
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if not isinstance(loaded_settings, dict):
                raise ConfigError(f"Configuration file {config_file} must contain a mapping of settings")
            unknown = sorted(set(loaded_settings) - set(self.DEFAULT_SETTINGS))
            if unknown:
                self.logger.warning(f"Ignoring unknown settings in {config_file}: {', '.join(unknown)}")
            # Merge with defaults, giving preference to loaded settings
            self.settings.update({k: v for k, v in loaded_settings.items() if k in self.DEFAULT_SETTINGS})
            self.logger.debug(f"Loaded configuration from: {os.path.relpath(config_file)}")

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ConfigError(f"Unsupported config file format: {file_ext}")
        except PermissionError:
            raise ConfigError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise ConfigError(f"Error reading configuration file {config_path}: {e}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'output': 'output',
            'clean': False,
            'web_prefix': DEFAULT_WEB_PREFIX,
            'template': 'none',
            'logs': None,
        }

        filename = f'simple-ssg.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    # Custom YAML output with comments
                    f.write("# simple-ssg configuration file\n")
                    f.write("# Command-line arguments override these settings\n\n")
                    f.write("# Build settings\n")
                    f.write("output: output\n")
                    f.write("clean: false\n\n")
                    f.write("# Links\n")
                    f.write(f"web_prefix: '{DEFAULT_WEB_PREFIX}'  # e.g. https://example.com/docs/\n\n")
                    f.write("# Templates\n")
                    f.write("template: none  # none, minimal, light or dark\n\n")
                    f.write("# Debug log directory (disabled when empty)\n")
                    f.write("logs:\n")
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2)
                else:
                    raise ConfigError(f"Unsupported config file format: {file_format}")
        except PermissionError:
            raise ConfigError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise ConfigError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is None:
                continue
            # A store_true flag left unset must not override the config file
            if key == 'clean' and value is False:
                continue
            merged[key] = value

        return merged
