"""
Configuration management (SSOT).

This module defines ALL configuration for the amount detection pipeline.
All config keys are defined here; no other module should invent config keys.

Configuration is built once and passed explicitly into clients and
services. No module reads API keys or model names from the environment
on its own.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

# Google Gemini REST endpoint
DEFAULT_LLM_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_LLM_MODEL = "gemini-2.5-flash-preview-05-20"

# Google Cloud Vision REST endpoint
DEFAULT_OCR_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"

# Upload limit for the image endpoint
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class LLMConfig:
    """LLM (Gemini) configuration.

    - enabled: Master switch; when off both LLM stages use their fallbacks
    - max_retries / base_delay_seconds: exponential backoff for every call
      (waits base_delay * 2**attempt between attempts)
    """

    enabled: bool = True
    api_key: Optional[str] = None
    model: str = DEFAULT_LLM_MODEL
    api_base_url: str = DEFAULT_LLM_BASE_URL
    # Attempts per call (including the first)
    max_retries: int = 3
    # First backoff wait, doubled after each failed attempt
    base_delay_seconds: float = 1.0
    # Transport timeout per attempt
    timeout_seconds: float = 30.0

    @property
    def is_usable(self) -> bool:
        """LLM calls are attempted only when enabled and a key is set."""
        return self.enabled and bool(self.api_key)

    def generate_url(self) -> str:
        """URL of the generateContent method for the configured model."""
        return f"{self.api_base_url.rstrip('/')}/{self.model}:generateContent"


@dataclass
class OCRConfig:
    """OCR (Google Cloud Vision) configuration."""

    api_key: Optional[str] = None
    endpoint: str = DEFAULT_OCR_ENDPOINT
    timeout_seconds: float = 30.0
    # Transport-level retries for 429/5xx responses
    max_retries: int = 2
    backoff_factor: float = 0.5
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES


@dataclass
class Config:
    """Application configuration (SSOT)."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)

    # Vertical distance (OCR position units) treated as the same text line
    line_tolerance: int = 10
    # Maximum difference for a text number to count as the same amount
    match_tolerance: float = 0.01

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if self.llm.max_retries < 1:
            errors.append("llm.max_retries must be >= 1")
        if self.llm.base_delay_seconds < 0:
            errors.append("llm.base_delay_seconds must be >= 0")
        if not self.llm.model:
            errors.append("llm.model is required")

        if not self.ocr.endpoint:
            errors.append("ocr.endpoint is required")
        if self.ocr.max_image_bytes <= 0:
            errors.append("ocr.max_image_bytes must be positive")

        if self.line_tolerance < 0:
            errors.append("line_tolerance must be >= 0")
        if self.match_tolerance <= 0:
            errors.append("match_tolerance must be positive")

        return errors

    def warnings(self) -> list[str]:
        """Non-fatal problems: the pipeline runs, but in degraded mode."""
        notes: list[str] = []
        if self.llm.enabled and not self.llm.api_key:
            notes.append("llm.api_key is not set; normalization and classification use fallbacks")
        if not self.ocr.api_key:
            notes.append("ocr.api_key is not set; image input is unavailable")
        return notes

    def raise_if_invalid(self) -> None:
        """Raise ConfigValidationError listing every validation error."""
        errors = self.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - GEMINI_API_KEY
    - GEMINI_MODEL
    - AMOUNT_DETECTOR_LLM_ENABLED (true/false)
    - GOOGLE_VISION_API_KEY
    - GOOGLE_VISION_ENDPOINT
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    # LLM config
    llm_data = data.get("llm", {})
    llm_enabled_env = os.environ.get("AMOUNT_DETECTOR_LLM_ENABLED", "").lower()
    llm_enabled = llm_data.get("enabled", True)
    if llm_enabled_env == "true":
        llm_enabled = True
    elif llm_enabled_env == "false":
        llm_enabled = False

    llm = LLMConfig(
        enabled=llm_enabled,
        api_key=os.environ.get("GEMINI_API_KEY", llm_data.get("api_key")),
        model=os.environ.get("GEMINI_MODEL", llm_data.get("model", DEFAULT_LLM_MODEL)),
        api_base_url=llm_data.get("api_base_url", DEFAULT_LLM_BASE_URL),
        max_retries=int(llm_data.get("max_retries", 3)),
        base_delay_seconds=float(llm_data.get("base_delay_seconds", 1.0)),
        timeout_seconds=float(llm_data.get("timeout_seconds", 30.0)),
    )

    # OCR config
    ocr_data = data.get("ocr", {})
    ocr = OCRConfig(
        api_key=os.environ.get("GOOGLE_VISION_API_KEY", ocr_data.get("api_key")),
        endpoint=os.environ.get(
            "GOOGLE_VISION_ENDPOINT", ocr_data.get("endpoint", DEFAULT_OCR_ENDPOINT)
        ),
        timeout_seconds=float(ocr_data.get("timeout_seconds", 30.0)),
        max_retries=int(ocr_data.get("max_retries", 2)),
        backoff_factor=float(ocr_data.get("backoff_factor", 0.5)),
        max_image_bytes=int(ocr_data.get("max_image_bytes", DEFAULT_MAX_IMAGE_BYTES)),
    )

    return Config(
        llm=llm,
        ocr=ocr,
        line_tolerance=int(data.get("line_tolerance", 10)),
        match_tolerance=float(data.get("match_tolerance", 0.01)),
    )


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = f"""# Amount Detector Configuration
#
# API keys may be left empty here and supplied through the environment
# (GEMINI_API_KEY, GOOGLE_VISION_API_KEY).

# LLM used for normalization and classification (Google Gemini)
llm:
  enabled: true                            # false = rule-based fallbacks only
  api_key: null
  model: "{DEFAULT_LLM_MODEL}"
  api_base_url: "{DEFAULT_LLM_BASE_URL}"
  max_retries: 3                           # Attempts per call
  base_delay_seconds: 1.0                  # Backoff: 1s, 2s, 4s, ...
  timeout_seconds: 30

# OCR provider for image input (Google Cloud Vision)
ocr:
  api_key: null
  endpoint: "{DEFAULT_OCR_ENDPOINT}"
  timeout_seconds: 30
  max_retries: 2                           # Transport retries on 429/5xx
  backoff_factor: 0.5
  max_image_bytes: {DEFAULT_MAX_IMAGE_BYTES}               # 10 MB upload limit

# Matching parameters
line_tolerance: 10      # OCR words within this vertical distance share a line
match_tolerance: 0.01   # Max difference between an amount and its source number
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
