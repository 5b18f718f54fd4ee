"""
Application Configuration

Settings and configuration management for the medicine identification pipeline.
The numeric heuristics below (bucket thresholds, accuracy increments, field
totals) have no clinical or statistical basis; they are kept here so
deployments can tune them.
"""

from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any
from pathlib import Path
import os


DEFAULT_CATALOG_PATH = str(Path(__file__).resolve().parent.parent / "data" / "medicines.json")


@dataclass
class VisionConfig:
    """Vision analyzer configuration."""

    type: str = "groq"  # groq, ollama, dummy
    model: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    api_key: Optional[str] = None  # Only for Groq
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llava:7b"
    temperature: float = 0.2
    max_tokens: int = 4096
    timeout: int = 120  # Request timeout in seconds


@dataclass
class SourcesConfig:
    """External data source configuration."""

    openfda_base_url: str = "https://api.fda.gov"
    rxnorm_base_url: str = "https://rxnav.nlm.nih.gov/REST"
    dailymed_base_url: str = "https://dailymed.nlm.nih.gov/dailymed"
    openfda_api_key: Optional[str] = None
    timeout_seconds: float = 15.0
    followup_timeout_seconds: float = 10.0
    regulatory_limit: int = 10
    label_limit: int = 5
    adverse_event_limit: int = 100
    catalog_path: str = DEFAULT_CATALOG_PATH
    user_agent: str = "medscan/1.0"
    # Reliability on the 1-10 scale, divided by 10 when used
    reliability: Dict[str, int] = field(default_factory=lambda: {
        "regulatory_filings": 10,
        "structured_label": 10,
        "label_repository": 9,
        "drug_nomenclature": 8,
        "adverse_events": 8,
        "local_catalog": 5,
        "vision_analysis": 3,
    })

    def weight_for(self, source_id: str) -> float:
        """Reliability of a source in [0, 1]."""
        return max(0, min(10, self.reliability.get(source_id, 5))) / 10.0


@dataclass
class AggregationConfig:
    """Aggregation engine configuration."""

    primary_term_limit: int = 5
    secondary_term_limit: int = 3
    max_workers: int = 6
    phase_timeout_seconds: float = 90.0
    agreement_threshold: int = 3


@dataclass
class QualityConfig:
    """Profile compilation and data quality heuristics."""

    common_reaction_threshold: int = 1000
    serious_reaction_threshold: int = 100
    total_possible_fields: int = 50
    max_leaf_depth: int = 3
    accuracy_baseline: int = 85
    accuracy_bonus_three_sources: int = 10
    accuracy_bonus_five_sources: int = 5


@dataclass
class SafetyConfig:
    """Safety configuration."""

    inject_disclaimer: bool = True
    disclaimer_language: str = "en"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    log_file: Optional[str] = None
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _apply(section: Any, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        if hasattr(section, key):
            setattr(section, key, value)


@dataclass
class AppConfig:
    """
    Main application configuration.

    Aggregates all component configurations.
    """

    vision: VisionConfig = field(default_factory=VisionConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    safety: SafetyConfig = field(default_factory=SafetyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            MEDSCAN_VISION_TYPE: Vision analyzer (groq/ollama/dummy)
            MEDSCAN_VISION_MODEL: Vision model name
            MEDSCAN_VISION_API_KEY: Groq API key (falls back to GROQ_API_KEY)
            MEDSCAN_VISION_TIMEOUT: Model request timeout in seconds
            MEDSCAN_OLLAMA_BASE_URL: Ollama API URL
            MEDSCAN_OPENFDA_BASE_URL: openFDA base URL
            MEDSCAN_OPENFDA_API_KEY: openFDA API key
            MEDSCAN_RXNORM_BASE_URL: RxNav base URL
            MEDSCAN_SOURCE_TIMEOUT: Per-call provider timeout in seconds
            MEDSCAN_CATALOG_PATH: Local fallback catalog JSON file
            MEDSCAN_MAX_WORKERS: Concurrent adapter calls per phase
            MEDSCAN_PHASE_TIMEOUT: Maximum wait for one phase in seconds
            MEDSCAN_LOG_LEVEL: Logging level
            MEDSCAN_LOG_FILE: Optional log file
            MEDSCAN_DISCLAIMER_LANGUAGE: Disclaimer language (en/tr)
        """
        config = cls()

        # Vision
        if vision_type := os.getenv("MEDSCAN_VISION_TYPE"):
            config.vision.type = vision_type
        if model := os.getenv("MEDSCAN_VISION_MODEL"):
            config.vision.model = model
            config.vision.ollama_model = model
        if api_key := os.getenv("MEDSCAN_VISION_API_KEY"):
            config.vision.api_key = api_key
        elif api_key := os.getenv("GROQ_API_KEY"):
            config.vision.api_key = api_key
        if timeout := os.getenv("MEDSCAN_VISION_TIMEOUT"):
            config.vision.timeout = int(timeout)
        if ollama_url := os.getenv("MEDSCAN_OLLAMA_BASE_URL"):
            config.vision.ollama_base_url = ollama_url

        # Sources
        if openfda_url := os.getenv("MEDSCAN_OPENFDA_BASE_URL"):
            config.sources.openfda_base_url = openfda_url
        if openfda_key := os.getenv("MEDSCAN_OPENFDA_API_KEY"):
            config.sources.openfda_api_key = openfda_key
        if rxnorm_url := os.getenv("MEDSCAN_RXNORM_BASE_URL"):
            config.sources.rxnorm_base_url = rxnorm_url
        if source_timeout := os.getenv("MEDSCAN_SOURCE_TIMEOUT"):
            config.sources.timeout_seconds = float(source_timeout)
        if catalog_path := os.getenv("MEDSCAN_CATALOG_PATH"):
            config.sources.catalog_path = catalog_path

        # Aggregation
        if max_workers := os.getenv("MEDSCAN_MAX_WORKERS"):
            config.aggregation.max_workers = int(max_workers)
        if phase_timeout := os.getenv("MEDSCAN_PHASE_TIMEOUT"):
            config.aggregation.phase_timeout_seconds = float(phase_timeout)

        # Safety
        if language := os.getenv("MEDSCAN_DISCLAIMER_LANGUAGE"):
            config.safety.disclaimer_language = language

        # Logging
        if log_level := os.getenv("MEDSCAN_LOG_LEVEL"):
            config.logging.level = log_level
        if log_file := os.getenv("MEDSCAN_LOG_FILE"):
            config.logging.log_file = log_file

        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """Create configuration from dictionary; unknown keys are ignored."""
        config = cls()

        for section in fields(cls):
            if section.name in data:
                _apply(getattr(config, section.name), data[section.name])

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary; secrets are omitted."""
        return {
            "vision": {
                "type": self.vision.type,
                "model": self.vision.model,
                "ollama_base_url": self.vision.ollama_base_url,
                "temperature": self.vision.temperature,
                "max_tokens": self.vision.max_tokens,
                "timeout": self.vision.timeout,
            },
            "sources": {
                "openfda_base_url": self.sources.openfda_base_url,
                "rxnorm_base_url": self.sources.rxnorm_base_url,
                "timeout_seconds": self.sources.timeout_seconds,
                "followup_timeout_seconds": self.sources.followup_timeout_seconds,
                "catalog_path": self.sources.catalog_path,
                "reliability": dict(self.sources.reliability),
            },
            "aggregation": {
                "primary_term_limit": self.aggregation.primary_term_limit,
                "secondary_term_limit": self.aggregation.secondary_term_limit,
                "max_workers": self.aggregation.max_workers,
                "phase_timeout_seconds": self.aggregation.phase_timeout_seconds,
                "agreement_threshold": self.aggregation.agreement_threshold,
            },
            "quality": {
                "common_reaction_threshold": self.quality.common_reaction_threshold,
                "serious_reaction_threshold": self.quality.serious_reaction_threshold,
                "total_possible_fields": self.quality.total_possible_fields,
                "accuracy_baseline": self.quality.accuracy_baseline,
                "accuracy_bonus_three_sources": self.quality.accuracy_bonus_three_sources,
                "accuracy_bonus_five_sources": self.quality.accuracy_bonus_five_sources,
            },
            "safety": {
                "inject_disclaimer": self.safety.inject_disclaimer,
                "disclaimer_language": self.safety.disclaimer_language,
            },
            "logging": {
                "level": self.logging.level,
                "log_file": self.logging.log_file,
            },
        }


def get_default_config() -> AppConfig:
    """Get default application configuration."""
    return AppConfig.from_env()
