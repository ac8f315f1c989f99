"""
Configuration management for the Loupe engine.

This module provides configuration loading with sensible defaults for the
language, rule selection, severity overrides and evaluation policy.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional
import logging
import os

import yaml

logger = logging.getLogger(__name__)

# Validators run for every rule; only measure_nodes depends on the operation
CONTEXT_GATING_MEASURE_CALLBACK = "measure_callback"
# Rules whose context excludes the requested operation are skipped entirely
CONTEXT_GATING_RULE = "rule"
CONTEXT_GATING_POLICIES = (CONTEXT_GATING_MEASURE_CALLBACK, CONTEXT_GATING_RULE)

CONFIG_FILE_NAMES = [".loupe.yml", ".loupe.yaml", "loupe.yml", "loupe.yaml"]


@dataclass
class EngineConfig:
    """Configuration for the Loupe engine."""

    # Grammar used to parse sources and compile queries
    language: str = "java"

    # Rule registry file (YAML or JSON)
    rules_path: Optional[str] = None

    # fnmatch patterns over "<category>/<name>" rule ids
    enabled_rules: List[str] = None

    # Rule priority overrides (rule_id -> priority)
    rule_priorities: Dict[str, int] = None

    # Evaluation policy
    context_gating: str = CONTEXT_GATING_MEASURE_CALLBACK
    allow_syntax_errors: bool = True
    max_total_findings: int = 0  # 0 = unlimited

    # Diagnostics
    enable_timing: bool = False
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.enabled_rules is None:
            object.__setattr__(self, 'enabled_rules', ["*"])
        if self.rule_priorities is None:
            object.__setattr__(self, 'rule_priorities', {})
        if self.context_gating not in CONTEXT_GATING_POLICIES:
            raise ValueError(
                f"context_gating must be one of {', '.join(CONTEXT_GATING_POLICIES)}, "
                f"got {self.context_gating!r}"
            )


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to config file (YAML). If None, uses defaults.

    Returns:
        EngineConfig instance
    """
    defaults = asdict(EngineConfig())

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f) or {}

            unknown = sorted(set(file_config) - set(defaults))
            if unknown:
                logger.warning("Ignoring unknown config keys in %s: %s", config_path, ", ".join(unknown))

            merged_config = defaults.copy()
            merged_config.update({key: value for key, value in file_config.items() if key in defaults})

            # Deep merge priority overrides
            merged_config["rule_priorities"] = dict(defaults["rule_priorities"])
            merged_config["rule_priorities"].update(file_config.get("rule_priorities") or {})

            # Relative rule registry paths are resolved against the config file
            rules_path = merged_config.get("rules_path")
            if rules_path and not os.path.isabs(rules_path):
                merged_config["rules_path"] = os.path.join(os.path.dirname(os.path.abspath(config_path)), rules_path)

            return EngineConfig(**merged_config)

        except (OSError, yaml.YAMLError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Failed to load config from %s: %s. Using default configuration.", config_path, e)

    return EngineConfig(**defaults)


def get_default_config() -> EngineConfig:
    """Get default configuration without loading from file."""
    return load_config(None)


def save_config(config: EngineConfig, config_path: str) -> None:
    """
    Save configuration to file.

    Args:
        config: EngineConfig to save
        config_path: Path where to save the config
    """
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(asdict(config), f, default_flow_style=False, indent=2)


def find_config_file(start_path: str = ".") -> Optional[str]:
    """
    Find configuration file by walking up the directory tree.

    Looks for .loupe.yml, .loupe.yaml, loupe.yml and loupe.yaml in that order.

    Args:
        start_path: Directory to start searching from

    Returns:
        Path to config file or None if not found
    """
    current_path = os.path.abspath(start_path)

    while True:
        for config_name in CONFIG_FILE_NAMES:
            config_path = os.path.join(current_path, config_name)
            if os.path.exists(config_path):
                return config_path

        parent_path = os.path.dirname(current_path)
        if parent_path == current_path:
            # Reached the root directory
            break
        current_path = parent_path

    return None


def get_rule_priority(rule_id: str, config: EngineConfig, default_priority: int) -> int:
    """
    Get the configured priority for a rule, falling back to its declared one.

    Args:
        rule_id: Rule identifier (e.g., "Variables/Length < 3")
        config: Engine configuration
        default_priority: Priority declared by the rule

    Returns:
        Priority to evaluate the rule with (clamping happens in the scan manager)
    """
    if config.rule_priorities and rule_id in config.rule_priorities:
        return int(config.rule_priorities[rule_id])
    return default_priority
