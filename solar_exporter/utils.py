# solar_exporter/utils.py
import os
from aiohttp import ClientTimeout
from typing import Optional, Any, Dict, Mapping
import yaml
from solar_exporter.config import ExporterConfig, DEFAULT_ENCODING


def get_aiohttp_request_kwargs(
    timeout_seconds: int = 10,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Generate keyword arguments for aiohttp requests with proper typing.

    Args:
        timeout_seconds: Timeout in seconds. Defaults to 10.
        headers: Optional headers dictionary.

    Returns:
        dict: Keyword arguments for aiohttp requests (timeout, headers).
    """
    return {
        "timeout": ClientTimeout(total=timeout_seconds),
        "headers": headers or {},
    }


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """
    Load the optional YAML config file.

    Args:
        path: Path to the file, or None to skip loading.

    Returns:
        Dict[str, Any]: Parsed mapping, empty if no path was given or the file is empty.

    Raises:
        ValueError: If the file does not contain a mapping.
    """
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as file:
        data = yaml.safe_load(file)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def _as_int(key: str, value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {key} in config: {value!r}") from None


def validate_config(
    config: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """
    Validate and sanitize the exporter configuration.

    The PORT environment variable is used when no port is configured.

    Args:
        config: Raw configuration, CLI overrides already merged in.
        environ: Environment to read PORT from. Defaults to os.environ.

    Returns:
        Dict[str, Any]: Validated configuration with defaults.

    Raises:
        ValueError: If required fields are missing or malformed.
    """
    if environ is None:
        environ = os.environ

    port = config.get("port")
    if port is None:
        port = environ.get("PORT")

    validated_config = {
        "endpoint": config.get("endpoint"),
        "port": _as_int("port", port),
        "host": config.get("host") or "0.0.0.0",
        "timeout": _as_int("timeout", config.get("timeout"), 10),
        "max_retries": _as_int("max_retries", config.get("max_retries"), 3),
        "backoff": _as_int("backoff", config.get("backoff"), 2),
        "encoding": config.get("encoding") or DEFAULT_ENCODING,
    }

    if not validated_config.get("endpoint"):
        raise ValueError("Missing required field in config: endpoint")
    if validated_config.get("port") is None:
        raise ValueError("Missing required field in config: port")
    if not 0 <= validated_config["port"] <= 65535:
        raise ValueError(f"Invalid value for port in config: {validated_config['port']}")

    return validated_config


def build_config(
    config: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None
) -> ExporterConfig:
    """Build an ExporterConfig from a raw mapping."""
    return ExporterConfig(**validate_config(config, environ))
