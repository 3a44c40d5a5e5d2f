#!/usr/bin/env python3
"""
Configuration Management Module for batchmint

Handles hierarchical configuration loading (defaults, config file,
environment variables, command-line overrides) and resolves it into the
immutable PipelineConfig a mint run is built from.
"""

import copy
import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from network.ledger import NETWORK_RPC_URLS
from network.turbo import DEFAULT_GATEWAY_URL, DEFAULT_PAYMENT_URL, DEFAULT_UPLOAD_URL
from nft.exceptions import ConfigError
from nft.uploader import PLACEHOLDER_MODES


# Configuration file locations in order of precedence (highest to lowest)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / '.batchmint.yml',
    Path.cwd() / '.batchmint.json',
    Path.home() / '.batchmint' / 'config.yml',
    Path.home() / '.batchmint' / 'config.json',
]

# Environment variable prefix
ENV_PREFIX = 'BATCHMINT_'

COMMITMENT_LEVELS = ('processed', 'confirmed', 'finalized')

# Default configuration values
DEFAULT_CONFIG = {
    'wallet': {
        'keypair_path': './keypair.json'
    },

    'catalog': {
        'directory': './nfts'
    },

    'network': {
        'cluster': 'mainnet-beta',  # mainnet-beta, devnet, testnet, localnet
        'rpc_url': None,            # defaults to the cluster's public endpoint
        'commitment': 'confirmed'
    },

    'mint': {
        'royalty_percentage': 5,
        'priority_fee': 50_000,     # micro-lamports per compute unit
        'simulate': True,
        'chunk_size': 3
    },

    'storage': {
        'upload_url': DEFAULT_UPLOAD_URL,
        'payment_url': DEFAULT_PAYMENT_URL,
        'gateway_url': DEFAULT_GATEWAY_URL,
        'serialize_funding': True,
        'placeholder_mode': 'sequential',
        'request_timeout': 60
    },

    'report': {
        'path': 'batch-mint-results.json'
    }
}

# Maps PipelineConfig fields to configuration paths
FIELD_PATHS = {
    'keypair_path': 'wallet.keypair_path',
    'catalog_dir': 'catalog.directory',
    'network': 'network.cluster',
    'rpc_url': 'network.rpc_url',
    'commitment': 'network.commitment',
    'royalty_percentage': 'mint.royalty_percentage',
    'priority_fee': 'mint.priority_fee',
    'simulate': 'mint.simulate',
    'chunk_size': 'mint.chunk_size',
    'upload_url': 'storage.upload_url',
    'payment_url': 'storage.payment_url',
    'gateway_url': 'storage.gateway_url',
    'serialize_funding': 'storage.serialize_funding',
    'placeholder_mode': 'storage.placeholder_mode',
    'request_timeout': 'storage.request_timeout',
    'report_path': 'report.path',
}


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable settings for one mint run."""

    keypair_path: Path
    catalog_dir: Path
    network: str = 'mainnet-beta'
    rpc_url: str = NETWORK_RPC_URLS['mainnet-beta']
    commitment: str = 'confirmed'
    royalty_percentage: float = 5
    priority_fee: int = 50_000
    simulate: bool = True
    chunk_size: int = 3
    report_path: Path = Path('batch-mint-results.json')
    upload_url: str = DEFAULT_UPLOAD_URL
    payment_url: str = DEFAULT_PAYMENT_URL
    gateway_url: str = DEFAULT_GATEWAY_URL
    serialize_funding: bool = True
    placeholder_mode: str = 'sequential'
    request_timeout: float = 60.0

    def __post_init__(self):
        errors = self.validate()
        if errors:
            raise ConfigError("Invalid configuration: " + "; ".join(errors))

    def validate(self) -> List[str]:
        """
        Validate settings.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.network not in NETWORK_RPC_URLS:
            errors.append(f"Invalid network: {self.network}")
        if not self.rpc_url:
            errors.append("RPC URL is required")
        if self.commitment not in COMMITMENT_LEVELS:
            errors.append(f"Invalid commitment: {self.commitment}")
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int) or self.chunk_size < 1:
            errors.append(f"Chunk size must be a positive integer: {self.chunk_size}")
        if not isinstance(self.royalty_percentage, (int, float)) or not 0 <= self.royalty_percentage <= 100:
            errors.append(f"Royalty percentage must be within 0..100: {self.royalty_percentage}")
        if not isinstance(self.priority_fee, int) or self.priority_fee < 0:
            errors.append(f"Priority fee must be a non-negative integer: {self.priority_fee}")
        if self.placeholder_mode not in PLACEHOLDER_MODES:
            errors.append(f"Invalid placeholder mode: {self.placeholder_mode}")
        if not isinstance(self.request_timeout, (int, float)) or self.request_timeout <= 0:
            errors.append(f"Request timeout must be positive: {self.request_timeout}")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, Path):
                result[key] = str(value)
        return result


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None,
                 environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
            environ: Environment mapping (defaults to os.environ)
        """
        self.logger = logging.getLogger(__name__)
        self.config_file = config_file
        self.environ = os.environ if environ is None else environ
        self._config_cache = None
        self._config_sources = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        configs = [copy.deepcopy(DEFAULT_CONFIG)]
        self._config_sources = ["defaults"]

        if self.config_file:
            path = Path(self.config_file).expanduser()
            if not path.is_file():
                raise ConfigError(f"Config file not found: {path}")
            configs.append(self._load_config_file(path))
            self._config_sources.append(f"file:{path}")
        else:
            for config_path in CONFIG_SEARCH_PATHS:
                if config_path.is_file():
                    configs.append(self._load_config_file(config_path))
                    self._config_sources.append(f"file:{config_path}")
                    self.logger.debug(f"Loaded config from {config_path}")
                    break  # Use first found config file

        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        self._config_cache = self._deep_merge(*configs)
        self._expand_paths(self._config_cache)

        return self._config_cache

    def _load_config_file(self, path: Path) -> Dict[str, Any]:
        """Load configuration from a YAML or JSON file."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix in ('.yml', '.yaml'):
                    data = yaml.safe_load(f)
                elif path.suffix == '.json':
                    data = json.load(f)
                else:
                    raise ConfigError(f"Unknown config file format: {path}")
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        The first underscore after the prefix separates the section from the
        key, e.g. BATCHMINT_MINT_CHUNK_SIZE -> {'mint': {'chunk_size': ...}}.
        """
        env_config = {}

        for key, value in self.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            config_key = key[len(ENV_PREFIX):].lower()
            section, _, name = config_key.partition('_')
            if not section or not name:
                self.logger.warning(f"Ignoring environment variable without a section: {key}")
                continue
            # BATCHMINT_SECRET_KEY and other non-config variables
            if section not in DEFAULT_CONFIG:
                self.logger.debug(f"Ignoring environment variable outside known sections: {key}")
                continue

            env_config.setdefault(section, {})[name] = self._parse_env_value(value)

        return env_config

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool, None]:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ('true', 'yes', 'on'):
            return True
        if value.lower() in ('false', 'no', 'off'):
            return False

        try:
            return json.loads(value)
        except ValueError:
            return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                else:
                    result[key] = value

        return result

    def _expand_paths(self, config: Dict[str, Any]):
        """Expand ~ and environment variables in string values."""
        for key, value in config.items():
            if isinstance(value, dict):
                self._expand_paths(value)
            elif isinstance(value, str) and ('~' in value or '$' in value):
                config[key] = os.path.expanduser(os.path.expandvars(value))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'mint.chunk_size')
            default: Default value if key not found
        """
        current = self.load()

        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def get_sources(self) -> List[str]:
        """Get list of configuration sources that were loaded."""
        self.load()
        return self._config_sources


def build_pipeline_config(manager: ConfigurationManager,
                          overrides: Optional[Dict[str, Any]] = None) -> PipelineConfig:
    """
    Resolve merged configuration plus overrides into a PipelineConfig.

    Args:
        manager: Loaded configuration manager
        overrides: PipelineConfig field values that win over every source
            (None values are ignored)

    Returns:
        PipelineConfig

    Raises:
        ConfigError: If any value is invalid
    """
    values = {}
    for field_name, key_path in FIELD_PATHS.items():
        value = manager.get(key_path)
        if value is not None:
            values[field_name] = value

    for field_name, value in (overrides or {}).items():
        if field_name not in FIELD_PATHS:
            raise ConfigError(f"Unknown configuration field: {field_name}")
        if value is not None:
            values[field_name] = value

    if not values.get('rpc_url'):
        values['rpc_url'] = NETWORK_RPC_URLS.get(values.get('network'), '')

    for field_name in ('keypair_path', 'catalog_dir', 'report_path'):
        if field_name in values:
            values[field_name] = Path(values[field_name]).expanduser()

    try:
        return PipelineConfig(**values)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
