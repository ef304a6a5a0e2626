from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from itmsplit.core.exceptions import ConfigurationError
from itmsplit.models.decoder_settings import DecoderSettings
from itmsplit.models.source_config import NetworkSourceConfig, SourceConfig

DEFAULT_DECODER = "itmsplit.decoders.counting:ByteCountingDecoder"


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: SourceConfig = Field(default_factory=NetworkSourceConfig)
    decoder: DecoderSettings = Field(default_factory=DecoderSettings)

    # module:attribute of a callable taking DecoderSettings
    decoder_factory: str = DEFAULT_DECODER

    verbosity: int = Field(default=1, ge=0, le=3)


def load_config_document(config_path: str) -> Dict[str, Any]:
    """Read a JSON or YAML config document into a dict."""
    config_file = Path(config_path)
    if not config_file.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    with open(config_file, "r") as f:
        if config_file.suffix == ".json":
            data = json.load(f)
        elif config_file.suffix in (".yaml", ".yml"):
            try:
                import yaml
            except ImportError:
                raise ConfigurationError(
                    "PyYAML required for YAML configs. "
                    "Install with: pip install itmsplit[yaml]"
                )
            data = yaml.safe_load(f)
        else:
            raise ConfigurationError(
                f"Unsupported config format: {config_file.suffix}. "
                "Use .json or .yaml"
            )

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config document must be a mapping: {config_path}")
    return data
