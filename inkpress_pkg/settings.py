#!/usr/bin/env python3
"""
Settings loader for Inkpress static site generator.
Supports configuration from inkpress.yml, inkpress.yaml, or inkpress.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional

from .errors import ConfigError


class SiteConfig:
    """
    Run-wide settings, built once at startup and handed to every component.

    Attributes are not meant to change after construction; there is no
    reload path.
    """

    def __init__(self, site_name: str = 'My Blog', site_url: str = 'https://yourdomain.com',
                 default_author: str = 'Your Name', default_image: str = '/images/default-featured.jpg',
                 posts_per_page: int = 5, image_max_width: int = 800, image_max_height: int = 400,
                 image_quality: int = 80, content_dir: str = 'content', templates_dir: str = 'templates',
                 output_dir: str = 'public', image_fetch_timeout: Optional[float] = None):
        self.site_name = site_name
        self.site_url = (site_url or '').rstrip('/')
        self.default_author = default_author
        self.default_image = default_image
        self.posts_per_page = max(1, int(posts_per_page))
        self.image_max_width = int(image_max_width)
        self.image_max_height = int(image_max_height)
        self.image_quality = int(image_quality)
        self.content_dir = content_dir
        self.templates_dir = templates_dir
        self.output_dir = output_dir
        self.image_fetch_timeout = image_fetch_timeout

    @property
    def posts_dir(self) -> str:
        return os.path.join(self.output_dir, 'posts')

    @property
    def images_dir(self) -> str:
        return os.path.join(self.output_dir, 'images')

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> 'SiteConfig':
        """Build a config from a merged settings dictionary."""
        return cls(
            site_name=settings['site_name'],
            site_url=settings['site_url'],
            default_author=settings['default_author'],
            default_image=settings['default_image'],
            posts_per_page=settings['posts_per_page'],
            image_max_width=settings['image_max_width'],
            image_max_height=settings['image_max_height'],
            image_quality=settings['image_quality'],
            content_dir=os.path.expanduser(settings['content']),
            templates_dir=os.path.expanduser(settings['templates']),
            output_dir=os.path.expanduser(settings['output']),
            image_fetch_timeout=settings.get('image_fetch_timeout'),
        )


class InkpressSettings:
    """Load and manage Inkpress configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'output': 'public',
        'content': 'content',
        'templates': 'templates',
        'site_name': 'My Blog',
        'site_url': 'https://yourdomain.com',
        'default_author': 'Your Name',
        'default_image': '/images/default-featured.jpg',
        'posts_per_page': 5,
        'image_max_width': 800,
        'image_max_height': 400,
        'image_quality': 80,
        'image_fetch_timeout': None,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['inkpress.yml', 'inkpress.yaml', 'inkpress.json']

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

        Raises:
            ConfigError: if a config file exists but cannot be read or parsed
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if not isinstance(loaded_settings, dict):
                raise ConfigError(f"Configuration file must contain a mapping: {config_file}")
            self.settings.update(loaded_settings)

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
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ConfigError(f"Unsupported config file format: {file_ext}")
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
        filename = f'inkpress.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Inkpress Configuration File\n\n")
                    f.write("# Site information\n")
                    f.write("site_name: My Blog\n")
                    f.write("site_url: https://yourdomain.com\n")
                    f.write("default_author: Your Name\n")
                    f.write("default_image: /images/default-featured.jpg\n\n")
                    f.write("# Build settings\n")
                    f.write("output: public\n")
                    f.write("content: content\n")
                    f.write("templates: templates\n")
                    f.write("posts_per_page: 5\n\n")
                    f.write("# Images (cover-fit crop, WebP output)\n")
                    f.write("image_max_width: 800\n")
                    f.write("image_max_height: 400\n")
                    f.write("image_quality: 80\n")
                elif file_format == 'json':
                    json.dump(self.DEFAULT_SETTINGS, f, indent=2)
                else:
                    raise ConfigError(f"Unsupported config file format: {file_format}")
        except (IOError, OSError) as e:
            raise ConfigError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.
        """
        merged = self.settings.copy()

        for key, value in args_dict.items():
            if value is not None and key in merged:
                merged[key] = value

        return merged
