"""
Configuration management for code generation.

Handles loading and merging configuration from JSON files,
providing defaults and validation for generator settings.
"""

import json
import re
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field

from .schema import AuditFieldSet, SchemaError


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass


@dataclass
class GeneratorConfig:
    """Base configuration for code generators."""

    # Base package, namespace, Go module path or source root
    package_name: str = "app"
    project_name: str = "api"

    # Table name -> module name
    module_grouping: Dict[str, str] = field(default_factory=dict)

    # Base/audit column names shared by every entity
    audit_fields: AuditFieldSet = field(default_factory=AuditFieldSet)

    # Output settings
    api_prefix: str = "/api/v1"
    add_comments: bool = True

    # Custom settings (language-specific)
    custom: Dict[str, Any] = field(default_factory=dict)

    def module_for(self, table_name: str, fallback: str) -> str:
        """Module a table is grouped under."""
        return self.module_grouping.get(table_name, fallback)


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager."""
        self._configs: Dict[str, Dict[str, Any]] = {}
        self._load_defaults()

    def _load_defaults(self):
        """Load default configurations for supported languages."""
        self._configs["java"] = {
            "package_name": "com.example.api",
            "custom": {
                "java_version": "21",
                "use_lombok": True,
            },
        }

        self._configs["python"] = {
            "package_name": "app",
            "custom": {
                "async_sessions": True,
            },
        }

        self._configs["go"] = {
            "package_name": "example.com/api",
            "custom": {
                "go_version": "1.22",
            },
        }

        self._configs["typescript"] = {
            "package_name": "src",
            "custom": {
                "validation": "class-validator",
            },
        }

    def get_config(
        self,
        language: str,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> GeneratorConfig:
        """
        Get complete configuration for a language.

        Args:
            language: Target language name
            custom_config: Custom configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration for the language
        """
        # Start with defaults
        base_config = json.loads(json.dumps(self._configs.get(language, {})))

        # Load from file if provided
        if config_file:
            file_config = self._load_config_file(config_file)
            self._merge(base_config, file_config, language)

        # Apply custom overrides
        if custom_config:
            self._merge(base_config, custom_config, language)

        # Create GeneratorConfig instance
        return self._dict_to_config(base_config)

    def _merge(self, base: Dict[str, Any], overrides: Dict[str, Any], language: str):
        """Merge shared overrides, then the section for ``language``."""
        targets = overrides.get("targets", {})
        if not isinstance(targets, dict):
            raise ConfigError("'targets' must map target names to settings")

        shared = {k: v for k, v in overrides.items() if k != "targets"}
        for layer in (shared, targets.get(language, {})):
            custom = layer.get("custom")
            if isinstance(custom, dict):
                base.setdefault("custom", {}).update(custom)
            base.update({k: v for k, v in layer.items() if k != "custom"})

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {str(e)}")
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {str(e)}")

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig instance."""
        # Extract known fields
        known_fields = set(GeneratorConfig.__dataclass_fields__)

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        # Add custom fields to the custom dict
        if custom_args:
            existing_custom = dict(config_args.get("custom", {}))
            existing_custom.update(custom_args)
            config_args["custom"] = existing_custom

        audit = config_args.get("audit_fields")
        if isinstance(audit, dict):
            try:
                config_args["audit_fields"] = AuditFieldSet.from_dict(audit)
            except (SchemaError, TypeError) as e:
                raise ConfigError(f"Invalid audit_fields: {e}")
        elif audit is not None and not isinstance(audit, AuditFieldSet):
            raise ConfigError(f"Invalid audit_fields: {audit!r}")

        return GeneratorConfig(**config_args)

    def save_config(self, config: GeneratorConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)

        audit = config.audit_fields
        config_dict = {
            "package_name": config.package_name,
            "project_name": config.project_name,
            "module_grouping": dict(config.module_grouping),
            "audit_fields": {
                name: getattr(audit, name) for name in audit.__dataclass_fields__
            },
            "api_prefix": config.api_prefix,
            "add_comments": config.add_comments,
            "custom": dict(config.custom),
        }

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {str(e)}")

    def list_languages(self) -> list[str]:
        """Get list of languages with default settings."""
        return list(self._configs.keys())

    def validate_config(self, config: GeneratorConfig, language: str) -> list[str]:
        """
        Validate configuration for a language.

        Returns:
            List of validation warnings
        """
        warnings = []

        if not config.api_prefix.startswith("/"):
            warnings.append(f"api_prefix should start with '/': {config.api_prefix}")

        if language == "java":
            if not re.fullmatch(r"[a-z_][a-z0-9_]*(\.[a-z_][a-z0-9_]*)*", config.package_name):
                warnings.append(f"Invalid Java package name: {config.package_name}")

        elif language == "go":
            if not re.fullmatch(r"[A-Za-z0-9._~/-]+", config.package_name):
                warnings.append(f"Invalid Go module path: {config.package_name}")

        elif language == "python":
            if not all(part.isidentifier() for part in config.package_name.split(".")):
                warnings.append(f"Invalid Python package name: {config.package_name}")

        return warnings


# Global configuration manager instance
_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    language: str = "",
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        language: Target language name
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration for the language
    """
    manager = get_config_manager()
    return manager.get_config(language, custom_config, config_file)


# Example configuration file for reference
EXAMPLE_CONFIG = {
    "project_name": "shop",
    "module_grouping": {"products": "catalog", "categories": "catalog"},
    "audit_fields": {"active": "estado", "created_at": "fecha_creacion"},
    "targets": {
        "java": {"package_name": "com.acme.shop"},
        "go": {"package_name": "github.com/acme/shop"},
    },
}
