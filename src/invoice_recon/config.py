"""Configuration loader and validation for reconciliation settings."""

from pathlib import Path
from typing import Any, Optional, Union
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CsvInputConfig(BaseModel):
    """Delimited bank export settings."""

    encoding: str = "utf-8-sig"
    delimiter: str = ","
    header_tokens: list[str] = Field(default_factory=lambda: ["Data księgowania", "Kwota"])
    date_formats: list[str] = Field(default_factory=lambda: ["%d-%m-%Y", "%Y-%m-%d"])
    min_columns: int = 9


class Mt940InputConfig(BaseModel):
    """SWIFT MT940 statement settings."""

    encoding: str = "cp1250"
    default_currency: str = "PLN"
    extensions: list[str] = Field(default_factory=lambda: [".sta", ".mt940", ".940", ".txt"])


class InputConfig(BaseModel):
    """Configuration for statement parsing."""

    csv: CsvInputConfig = Field(default_factory=CsvInputConfig)
    mt940: Mt940InputConfig = Field(default_factory=Mt940InputConfig)


class RegistryConfig(BaseModel):
    """Where to read the invoice registry from."""

    path: Optional[str] = None
    sheet_name: Union[int, str] = 0
    encoding: str = "utf-8"
    header_marker: str = "Timestamp"
    # Width used to pad ragged CSV rows
    max_columns: int = 32


class MatchingConfig(BaseModel):
    """Thresholds and tolerances for the matching strategies."""

    amount_tolerance: float = 0.05
    match_threshold: int = 70

    # Strategy 1: exact
    date_window_days: int = 7

    # Strategy 2: invoice number embedded in the transfer title
    number_min_length: int = 3
    number_amount_tolerance: float = 100.0
    number_percent_tolerance: float = 10.0
    number_score: int = 85

    # Strategy 3: counterparty with fuzzy amount
    counterparty_amount_tolerance: float = 50.0
    counterparty_percent_tolerance: float = 5.0
    counterparty_score: int = 75
    first_word_min_length: int = 4
    partial_excess: float = 50.0
    partial_score: int = 70

    # Strategy 4: several invoices paid with one transfer
    min_subset_candidates: int = 2
    max_subset_candidates: int = 9
    subset_score: int = 95

    # Duplicate detection
    duplicate_threshold: int = 80


class ExemptionRule(BaseModel):
    """Transactions mentioning any keyword are exempt under ``category``."""

    keywords: list[str]
    category: str


class ExemptionsConfig(BaseModel):
    """Configuration for transactions that never need an invoice."""

    rules: list[ExemptionRule] = Field(
        default_factory=lambda: [
            ExemptionRule(
                keywords=["prowizja", "opłata za prowadzenie", "opłata za przelew", "opłata za kartę"],
                category="FEES",
            ),
            ExemptionRule(
                keywords=["przelew własny", "przelew wewnętrzny", "między rachunkami"],
                category="INTERNAL_TRANSFER",
            ),
            ExemptionRule(
                keywords=["urząd skarbowy", "mikrorachunek podatkowy"],
                category="TAXES",
            ),
        ]
    )
    fee_type_label: str = "Opłaty i prowizje"
    fee_category: str = "FEES"
    income_category: str = "INCOME"


class RecoveryConfig(BaseModel):
    """Configuration for the deep search of missing invoices."""

    enabled: bool = True
    # Import path "package.module:factory" returning a RecoveryHook
    backend: Optional[str] = None
    internal_keywords: list[str] = Field(
        default_factory=lambda: ["Wewnętrzny", "ZUS", "Urząd Skarbowy"]
    )
    min_deterministic_queries: int = 5
    max_results_per_query: int = 5


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_report_{date}_{time}.xlsx"


class SheetsConfig(BaseModel):
    """Names of the report sheets."""

    summary: str = "Summary"
    missing: str = "Missing Invoices"
    matched: str = "Matched Transactions"
    exempt: str = "Exempt"


class OutputConfig(BaseModel):
    """Configuration for output."""

    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    input: InputConfig = Field(default_factory=InputConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    exemptions: ExemptionsConfig = Field(default_factory=ExemptionsConfig)
    recovery: RecoveryConfig = Field(default_factory=RecoveryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return ReconConfig().model_dump(exclude={"config_file_path"})


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        # Deep merge user config into defaults
        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Bank statement to invoice registry reconciliation configuration
# Generated configuration file - customize as needed

"""
    yaml_content += yaml.dump(
        config_dict, default_flow_style=False, sort_keys=False, allow_unicode=True
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
