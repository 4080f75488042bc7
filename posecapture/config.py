"""
Capture Settings

Thresholds, window sizes and timings for the guided capture live in
config.yaml at the repository root, one section per component:

    classifier  -> DirectionClassifier
    stability   -> StabilityTracker
    capture     -> FrameLoop, CooldownGate, JpegEncoder
    detection   -> MediaPipeLandmarkDetector

The file is parsed once and shared; each component receives its own section
as a plain dict and applies its own defaults for missing keys.

Usage:
    from posecapture.config import get_capture_config
    loop = FrameLoop(detector, source, encoder, config=get_capture_config())
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml


CONFIG_FILENAME = "config.yaml"
SECTIONS = ("classifier", "stability", "capture", "detection")

# Parsed config.yaml, shared by every caller of get_config()
_config_instance: Optional[Dict[str, Any]] = None


def get_project_root() -> Path:
    """
    Locate the directory holding config.yaml.

    Searches the parents of this package, nearest first.

    Raises:
        FileNotFoundError: If no parent directory contains config.yaml.
    """
    for directory in Path(__file__).resolve().parents:
        if (directory / CONFIG_FILENAME).exists():
            return directory

    raise FileNotFoundError(
        f"No {CONFIG_FILENAME} found above {Path(__file__).resolve().parent}. "
        "Run from a source checkout or pass an explicit path to load_config()."
    )


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Parse a capture settings file.

    Args:
        config_path: YAML file to read. Defaults to config.yaml at the
                     project root.

    Returns:
        Mapping of section name to section settings. An empty file gives {}.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the top level of the file is not a mapping.
        yaml.YAMLError: If the file is not valid YAML.
    """
    path = Path(config_path) if config_path is not None else get_project_root() / CONFIG_FILENAME
    if not path.exists():
        raise FileNotFoundError(f"Capture settings file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"{path} must contain a mapping of sections, got {type(config).__name__}")

    return config


def get_config(reload: bool = False) -> Dict[str, Any]:
    """
    Shared capture settings, parsed from config.yaml on first use.

    Args:
        reload: Re-read the file even if it was already parsed.
    """
    global _config_instance

    if _config_instance is None or reload:
        _config_instance = load_config()

    return _config_instance


def get_section(section_name: str) -> Dict[str, Any]:
    """
    Settings for one component (one of SECTIONS).

    Raises:
        KeyError: If config.yaml has no such section.
    """
    config = get_config()

    if section_name not in config:
        raise KeyError(
            f"config.yaml has no '{section_name}' section "
            f"(found: {', '.join(config) or 'none'}; expected: {', '.join(SECTIONS)})"
        )

    return config[section_name]


def get_classifier_config() -> Dict[str, Any]:
    """Direction classifier thresholds and landmark layout."""
    return get_section("classifier")


def get_stability_config() -> Dict[str, Any]:
    """Stability window size and threshold."""
    return get_section("stability")


def get_capture_config() -> Dict[str, Any]:
    """Tick interval, settle delay, cooldown and JPEG settings."""
    return get_section("capture")


def get_detection_config() -> Dict[str, Any]:
    """MediaPipe Face Landmarker confidences and face count."""
    return get_section("detection")
