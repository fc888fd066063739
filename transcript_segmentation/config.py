"""Environment-driven configuration and .env loading.

WHY: Deployments tune segmentation (pause sensitivity, line length) without
code changes. Reading overrides from the environment keeps those settings
next to the rest of the service configuration.

HOW: python-dotenv loads the .env file on import. load_config() starts from
a named preset, applies SEGMENTATION_* environment overrides, then explicit
keyword overrides, and returns a validated SegmentationConfig.

RULES:
- Precedence: explicit overrides > environment > preset
- Unknown preset names and non-integer values raise ValueError
- Environment values are read at call time, not import time
"""

from __future__ import annotations

import os
from typing import Dict, Optional

from dotenv import load_dotenv

from transcript_segmentation.presets import DEFAULT_PRESET, SegmentationConfig, get_preset

# Load .env from the project root (where the script is run from)
load_dotenv()

# Environment variable → SegmentationConfig field
ENV_OVERRIDES: Dict[str, str] = {
    "SEGMENTATION_PAUSE_THRESHOLD_MS": "pause_threshold",
    "SEGMENTATION_LONG_PAUSE_THRESHOLD_MS": "long_pause_threshold",
    "SEGMENTATION_MAX_WORDS": "max_words_per_segment",
    "SEGMENTATION_PREFERRED_WORDS": "preferred_words_per_segment",
    "SEGMENTATION_MIN_WORDS": "min_words_per_segment",
}


def default_preset_name() -> str:
    return os.getenv("SEGMENTATION_PRESET", DEFAULT_PRESET)


def default_log_level() -> str:
    return os.getenv("SEGMENTATION_LOG_LEVEL", "WARNING").upper()


def default_spacy_model() -> str:
    """spaCy pipeline used for English meaning groups and entities."""
    return os.getenv("SEGMENTATION_SPACY_MODEL", "en_core_web_sm")


def _read_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            "Environment variable {} must be an integer, got '{}'".format(name, raw)
        ) from None


def load_config(preset: Optional[str] = None, **overrides) -> SegmentationConfig:
    """Resolve the effective segmentation config.

    Args:
        preset: Preset name; defaults to SEGMENTATION_PRESET or "follow-along".
        **overrides: SegmentationConfig fields; None values are ignored.

    Returns:
        A validated SegmentationConfig.

    Raises:
        ValueError: On unknown preset, non-integer env value, or invalid bounds.
    """
    base = get_preset(preset or default_preset_name())

    fields = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        value = _read_int(env_name)
        if value is not None:
            fields[field_name] = value

    fields.update({k: v for k, v in overrides.items() if v is not None})
    if not fields:
        return base
    return base.replace(**fields)
