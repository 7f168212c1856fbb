"""
Configuration loader.

Handles:
- Locating the YAML configuration file (CLI flag, environment, user default)
- Environment variable substitution in string values
- Validation against the known option set
"""

import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_ENV_VAR = "FSL_VERBS_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/fsl-verbs/config.yaml")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


@dataclass(frozen=True)
class Config:
    """Runtime options shared by all operations.

    Attributes
    ----------
    fsldir : str, optional
        FSL installation; exported as ``FSLDIR`` for binary lookup.
    viewer : str
        Program launched by ``view``.
    bet_frac : float
        Default BET fractional intensity threshold.
    fdr_q : float
        Default FDR q value.
    norm_target : float
        Target median intensity for ``norm``.
    susan_bt_factor : float
        SUSAN brightness threshold as a fraction of the brain median.
    ica_report : bool
        Ask melodic for its HTML report.
    keep_intermediates : bool
        Keep files produced by the sub-steps of composite operations.
    """
    fsldir: Optional[str] = None
    viewer: str = "fsleyes"
    bet_frac: float = 0.5
    fdr_q: float = 0.05
    norm_target: float = 10000.0
    susan_bt_factor: float = 0.75
    ica_report: bool = True
    keep_intermediates: bool = False

    def apply_environment(self):
        """Export ``fsldir`` so FSL binaries resolve under it."""
        if self.fsldir:
            os.environ["FSLDIR"] = self.fsldir


def load_yaml(file_path: Path) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Raises
    ------
    ConfigurationError
        If file doesn't exist, YAML is invalid or the top level is not a mapping
    """
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}")

    try:
        with open(file_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {file_path}: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Expected a mapping at top level of {file_path}")
    return config


def substitute_env(value: Any) -> Any:
    """Replace ``${VAR}`` references in strings with environment values."""
    if not isinstance(value, str):
        return value

    def replacer(match):
        name = match.group(1)
        if name not in os.environ:
            raise ConfigurationError(f"Environment variable not set: {name}")
        return os.environ[name]

    return re.sub(r'\$\{([^}]+)\}', replacer, value)


def config_from_dict(data: Dict[str, Any]) -> Config:
    """Build a :class:`Config`, rejecting unknown keys and coercing types."""
    known = {f.name: f for f in fields(Config)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

    kwargs = {}
    for key, raw in data.items():
        value = substitute_env(raw)
        default = known[key].default
        try:
            if isinstance(default, bool):
                if not isinstance(value, bool):
                    raise ValueError(f"expected true/false, got {value!r}")
            elif isinstance(default, float):
                value = float(value)
            elif value is not None:
                value = str(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value for '{key}': {e}")
        kwargs[key] = value

    return Config(**kwargs)


def load_config(path: Optional[str] = None) -> Config:
    """
    Load configuration.

    Lookup order: explicit ``path``, ``$FSL_VERBS_CONFIG``, then
    ``~/.config/fsl-verbs/config.yaml``. Only the user default may be absent.

    Parameters
    ----------
    path : str, optional
        Explicit configuration file

    Returns
    -------
    Config
        Loaded configuration (defaults when no file is found)
    """
    explicit = path or os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return config_from_dict(load_yaml(Path(explicit).expanduser()))

    default_path = DEFAULT_CONFIG_PATH.expanduser()
    if default_path.exists():
        return config_from_dict(load_yaml(default_path))

    return Config()
