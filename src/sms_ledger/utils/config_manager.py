"""Configuration management for the SMS transaction parser."""

import json
import os
import yaml
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, Optional
import logging

from ..exceptions import ConfigurationError
from ..models.core import ParserConfig
from ..parsers.categorizer import Categorizer
from ..parsers.institution import InstitutionIdentifier
from ..parsers.patterns import PatternExtractor
from ..parsers.spam_filter import SpamFilter


logger = logging.getLogger(__name__)


class ConfigManager:
    """Finds, reads and checks the file that overrides the built-in tables"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self._config_cache: Optional[ParserConfig] = None

    def load_config(self, force_reload: bool = False) -> ParserConfig:
        """Return the effective ParserConfig, reading the file on first use.

        A file that fails validation is reported and the built-in defaults
        are used instead. Pass force_reload to read the file again.
        """
        if self._config_cache is not None and not force_reload:
            return self._config_cache

        config_data = self._load_config_file()

        try:
            config = self.build_config(config_data)
            logger.debug(f"Parser tables ready ({self.config_path or 'default search path'})")
        except ConfigurationError as e:
            logger.warning(f"Invalid parser tables: {e}. Using built-in defaults.")
            config = ParserConfig()

        self._config_cache = config
        return self._config_cache

    @staticmethod
    def build_config(config_data: Dict[str, Any]) -> ParserConfig:
        """Create a ParserConfig from raw settings and check its tables.

        Raises:
            ConfigurationError: If a table override cannot be used
        """
        try:
            threshold = Decimal(str(config_data.get('high_value_threshold', '10000')))
        except InvalidOperation:
            raise ConfigurationError("high_value_threshold must be a number") from None

        config = ParserConfig(
            data_directory=config_data.get('data_directory', 'data'),
            log_directory=config_data.get('log_directory', 'logs'),
            high_value_threshold=threshold,
            default_category=config_data.get('default_category', 'Others'),
            spam_keywords=config_data.get('spam_keywords'),
            institution_identifiers=config_data.get('institution_identifiers'),
            category_keywords=config_data.get('category_keywords'),
            extra_patterns=config_data.get('extra_patterns'),
            date_formats=config_data.get('date_formats'),
        )

        # Building each component runs its own table validation
        InstitutionIdentifier(config.institution_identifiers)
        PatternExtractor(config.extra_patterns)
        Categorizer(
            config.category_keywords,
            high_value_threshold=config.high_value_threshold,
            default_category=config.default_category,
        )
        return config

    def _load_config_file(self) -> Dict[str, Any]:
        """Raw settings from the config file, or {} if there is none or it is unreadable"""
        config_file = self._find_config_file()

        if not config_file or not os.path.exists(config_file):
            logger.info("No sms_ledger config file found, using built-in tables")
            return {}

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.endswith('.json'):
                    data = json.load(f)
                elif config_file.endswith(('.yml', '.yaml')):
                    data = yaml.safe_load(f)
                else:
                    logger.warning(f"Config file must be .json, .yml or .yaml: {config_file}")
                    return {}

            if data is None:
                data = {}
            self._validate_config_data(data)
            logger.info(f"Configuration loaded from {config_file}")
            return data

        except (OSError, json.JSONDecodeError, yaml.YAMLError, ConfigurationError) as e:
            logger.error(f"Ignoring config file {config_file}: {e}")
            return {}

    def _find_config_file(self) -> Optional[str]:
        if self.config_path:
            return self.config_path

        search_paths = [
            'sms_ledger.json',
            'sms_ledger.yml',
            'sms_ledger.yaml',
            'config/sms_ledger.json',
            'config/sms_ledger.yml',
            'config/sms_ledger.yaml',
            os.path.expanduser('~/.sms_ledger/config.json'),
            os.path.expanduser('~/.sms_ledger/config.yml'),
            os.path.expanduser('~/.sms_ledger/config.yaml'),
        ]

        for path in search_paths:
            if os.path.exists(path):
                return path

        return None

    def _validate_config_data(self, data: Dict[str, Any]) -> None:
        """Check value types before any table is built.

        Raises:
            ConfigurationError: On the first key with a value of the wrong shape
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a dictionary")

        for dir_key in ['data_directory', 'log_directory']:
            if dir_key in data:
                if not isinstance(data[dir_key], str):
                    raise ConfigurationError(f"{dir_key} must be a string")
                if not data[dir_key].strip():
                    raise ConfigurationError(f"{dir_key} cannot be empty")

        if 'high_value_threshold' in data:
            value = data['high_value_threshold']
            if isinstance(value, bool):
                raise ConfigurationError("high_value_threshold must be a number")
            try:
                threshold = Decimal(str(value))
            except InvalidOperation:
                raise ConfigurationError("high_value_threshold must be a number") from None
            if not threshold.is_finite() or threshold < 0:
                raise ConfigurationError("high_value_threshold must be a non-negative number")

        if 'default_category' in data and not isinstance(data['default_category'], str):
            raise ConfigurationError("default_category must be a string")

        for list_key in ['spam_keywords', 'date_formats']:
            if list_key in data:
                if not isinstance(data[list_key], list):
                    raise ConfigurationError(f"{list_key} must be a list")
                for item in data[list_key]:
                    if not isinstance(item, str):
                        raise ConfigurationError(f"All {list_key} entries must be strings")

        for mapping_key in ['institution_identifiers', 'category_keywords']:
            if mapping_key in data:
                if not isinstance(data[mapping_key], dict):
                    raise ConfigurationError(f"{mapping_key} must be a dictionary")
                for name, values in data[mapping_key].items():
                    if not isinstance(values, list):
                        raise ConfigurationError(f"{mapping_key}.{name} must be a list")

        if 'extra_patterns' in data:
            if not isinstance(data['extra_patterns'], dict):
                raise ConfigurationError("extra_patterns must be a dictionary")
            for name, entries in data['extra_patterns'].items():
                if not isinstance(entries, list):
                    raise ConfigurationError(f"extra_patterns.{name} must be a list")
                for entry in entries:
                    if not isinstance(entry, dict) or 'pattern' not in entry:
                        raise ConfigurationError(
                            f"extra_patterns.{name} entries need a 'pattern' key"
                        )

    def save_config_template(self, output_path: str) -> None:
        """Write the built-in tables to a JSON or YAML file (by extension) for editing"""
        template = {
            "data_directory": "data",
            "log_directory": "logs",
            "high_value_threshold": 10000,
            "default_category": "Others",
            "date_formats": ParserConfig().date_formats,
            "spam_keywords": list(SpamFilter.DEFAULT_KEYWORDS),
            "institution_identifiers": {
                institution.value: list(idents)
                for institution, idents in InstitutionIdentifier.DEFAULT_IDENTIFIERS.items()
            },
            "category_keywords": {
                name: list(keywords) for name, keywords in Categorizer.DEFAULT_GROUPS
            },
            "extra_patterns": {
                "generic": [
                    {
                        "pattern": r"(?:INR|Rs\.?)\s*(\d[\d,]*(?:\.\d+)?)\s+(debited|credited)\b.*?\bto\s+(\S+)",
                        "layout": "bank"
                    }
                ]
            }
        }

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            if output_path.endswith(('.yml', '.yaml')):
                yaml.safe_dump(template, f, default_flow_style=False, indent=2,
                               sort_keys=False, allow_unicode=True)
            else:
                json.dump(template, f, indent=2, ensure_ascii=False)

        logger.info(f"Configuration template saved to {output_path}")

    def reset_config(self) -> None:
        self._config_cache = None
        logger.debug("Config cache cleared")
