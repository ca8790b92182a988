import yaml
import logging
from typing import List, Optional, Dict, Any
from pathlib import Path
from pydantic import BaseModel, Field

# Default configuration values
DEFAULT_CONFIG_PATH = "registry.config.yaml"
DEFAULT_OUTPUT_DIR = "generated"
DEFAULT_REGISTRY_FILENAME = "scriptRegistry.json"
DEFAULT_SEARCH_INDEX_FILENAME = "scriptIndex.json"
DEFAULT_SUMMARY_FILENAME = "registrySummary.json"
DEFAULT_MODULE = "@minecraft/server"
DEFAULT_DUPLICATE_POLICY = "last_wins"
DEFAULT_DOC_LOOKBACK_LIMIT = 50
DEFAULT_COVERAGE_WARNING_THRESHOLD = 90.0
DEFAULT_LOG_LEVEL = "INFO"

PARSER_VERSION = "1.0.0"
DUPLICATE_POLICIES = ("last_wins", "first_wins", "error")

FALLBACK_MODULE_CATEGORY = "General"
FALLBACK_MODULE_VERSION = "1.0.0"
FALLBACK_MODULE_DESCRIPTION = "Minecraft scripting module."

DEFAULT_MODULE_CATEGORIES: Dict[str, str] = {
    "@minecraft/server": "Server",
    "@minecraft/server-admin": "Admin",
    "@minecraft/server-net": "Networking",
    "@minecraft/server-ui": "UI",
}

DEFAULT_MODULE_VERSIONS: Dict[str, str] = {
    "@minecraft/server": "2.2.0",
    "@minecraft/server-admin": "1.0.0",
    "@minecraft/server-net": "1.0.0",
    "@minecraft/server-ui": "1.2.0",
}

DEFAULT_MODULE_DESCRIPTIONS: Dict[str, str] = {
    "@minecraft/server": (
        "Contains many types related to manipulating a Minecraft world, "
        "including entities, blocks, dimensions, and more."
    ),
    "@minecraft/server-admin": "Contains types for managing server administrative functions.",
    "@minecraft/server-net": "Contains types for networking functionality.",
    "@minecraft/server-ui": "Contains types for creating and managing user interface forms.",
}


class RegistryConfig(BaseModel):
    """
    Central configuration model for registry generation.
    """
    source_file: Optional[str] = Field(default=None)
    output_dir: str = Field(default=DEFAULT_OUTPUT_DIR)
    registry_filename: str = Field(default=DEFAULT_REGISTRY_FILENAME)
    search_index_filename: str = Field(default=DEFAULT_SEARCH_INDEX_FILENAME)
    summary_filename: str = Field(default=DEFAULT_SUMMARY_FILENAME)

    default_module: str = Field(default=DEFAULT_MODULE)
    allowed_modules: List[str] = Field(default_factory=list)
    module_categories: Dict[str, str] = Field(default_factory=lambda: DEFAULT_MODULE_CATEGORIES.copy())
    module_versions: Dict[str, str] = Field(default_factory=lambda: DEFAULT_MODULE_VERSIONS.copy())
    module_descriptions: Dict[str, str] = Field(default_factory=lambda: DEFAULT_MODULE_DESCRIPTIONS.copy())

    duplicate_policy: str = Field(default=DEFAULT_DUPLICATE_POLICY, pattern="^(last_wins|first_wins|error)$")
    doc_lookback_limit: int = Field(default=DEFAULT_DOC_LOOKBACK_LIMIT, ge=1)
    coverage_warning_threshold: float = Field(default=DEFAULT_COVERAGE_WARNING_THRESHOLD, ge=0.0, le=100.0)
    log_level: str = Field(default=DEFAULT_LOG_LEVEL)

    # Allow extra fields for flexibility
    class Config:
        extra = "allow"

    def category_for(self, module: str) -> str:
        return self.module_categories.get(module, FALLBACK_MODULE_CATEGORY)

    def version_for(self, module: str) -> str:
        return self.module_versions.get(module, FALLBACK_MODULE_VERSION)

    def description_for(self, module: str) -> str:
        return self.module_descriptions.get(module, FALLBACK_MODULE_DESCRIPTION)

    def output_path(self, filename: str) -> Path:
        return Path(self.output_dir) / filename

    def registry_path(self) -> Path:
        return self.output_path(self.registry_filename)

    def search_index_path(self) -> Path:
        return self.output_path(self.search_index_filename)

    def summary_path(self) -> Path:
        return self.output_path(self.summary_filename)


def load_config(
    config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> RegistryConfig:
    """
    Load configuration from file and overrides.

    Priority:
    1. CLI Arguments (if provided and not None)
    2. Config File (if provided or found at default path)
    3. Default Values

    Args:
        config_path: Path to the YAML config file. If None, tries 'registry.config.yaml'.
        cli_args: Dictionary of CLI arguments to override config values.

    Returns:
        RegistryConfig: The resolved configuration object.
    """
    config_data: Dict[str, Any] = {}

    target_path = config_path if config_path else DEFAULT_CONFIG_PATH
    path_obj = Path(target_path)

    if path_obj.exists() and path_obj.is_file():
        try:
            with open(path_obj, 'r', encoding='utf-8') as f:
                file_data = yaml.safe_load(f)
                if isinstance(file_data, dict):
                    config_data.update(file_data)
                elif file_data is not None:
                    logging.warning(f"Ignoring config file {target_path}: top level is not a mapping")
            logging.info(f"Loaded configuration from {target_path}")
        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Failed to load config file {target_path}: {e}")
    elif config_path:
        logging.warning(f"Config file not found at explicit path: {config_path}")
    else:
        logging.info(f"No config file found at {DEFAULT_CONFIG_PATH}, using defaults.")

    if cli_args:
        for key, value in cli_args.items():
            if value is not None:
                config_data[key] = value

    return RegistryConfig(**config_data)
