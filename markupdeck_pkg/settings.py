#!/usr/bin/env python3
"""
Settings loader for markupdeck.
Supports configuration from markupdeck.yml, markupdeck.yaml, or markupdeck.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional


class MarkupDeckSettings:
    """Load and manage markupdeck configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'src': 'src',
        'dist': 'dist',
        'index_template': 'index.html',
        'repo': '.',
        'history_count': 20,
        'project_name': None,
        'project_version': '0.0.0',
        'html_vars': {},
        'sprite_padding': 4,
        'image_quality': 75,
        'timezone': 'Asia/Seoul',
        'timezone_label': ' (GMT+9)',
        'zip': False,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['markupdeck.yml', 'markupdeck.yaml', 'markupdeck.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            try:
                loaded_settings = self._load_config_file(config_file)
                if loaded_settings:
                    self.settings.update(loaded_settings)
                    print(f"Loaded configuration from: {os.path.relpath(config_file)}")
            except (ValueError, IOError, OSError) as e:
                print(f"Warning: Failed to load config file {config_file}: {e}")

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
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
                    data = yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    data = json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        return data

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        if file_format not in ['yml', 'yaml', 'json']:
            raise ValueError(f"Unsupported config file format: {file_format}")

        filename = f'markupdeck.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# markupdeck configuration file\n\n")
                    f.write("# Project information (used for the index page and archive name)\n")
                    f.write("project_name: my-markup\n")
                    f.write("project_version: 0.1.0\n\n")
                    f.write("# Paths\n")
                    f.write("src: src\n")
                    f.write("dist: dist\n")
                    f.write("index_template: index.html\n")
                    f.write("repo: .\n\n")
                    f.write("# Index page\n")
                    f.write("history_count: 20\n")
                    f.write("timezone: Asia/Seoul\n")
                    f.write("timezone_label: ' (GMT+9)'\n\n")
                    f.write("# Assets\n")
                    f.write("sprite_padding: 4\n")
                    f.write("image_quality: 75\n\n")
                    f.write("# Variables available to every page under src/html\n")
                    f.write("html_vars: {}\n\n")
                    f.write("# Create a zip archive of dist after building\n")
                    f.write("zip: false\n")
                elif file_format == 'json':
                    sample_config = self.DEFAULT_SETTINGS.copy()
                    sample_config.update({'project_name': 'my-markup', 'project_version': '0.1.0'})
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.
        """
        merged = self.settings.copy()
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value
        return merged
