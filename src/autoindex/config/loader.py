"""
Cargador de configuración con deep merge.

Orden de precedencia (de menor a mayor):
1. Defaults (definidos en los schemas Pydantic)
2. Archivo YAML
3. Variables de entorno
4. Argumentos CLI

El merge es recursivo para preservar todas las claves en todos los niveles.
"""

import os
from pathlib import Path
from typing import Any

import yaml

from .schema import AppConfig


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge recursivo de diccionarios.

    Args:
        base: Diccionario base
        override: Diccionario que sobreescribe valores del base

    Returns:
        Nuevo diccionario con valores merged. Override gana en conflictos de hojas.

    Example:
        >>> base = {"a": {"b": 1, "c": 2}, "d": 3}
        >>> override = {"a": {"b": 99}, "e": 4}
        >>> deep_merge(base, override)
        {"a": {"b": 99, "c": 2}, "d": 3, "e": 4}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config(config_path: Path | None) -> dict[str, Any]:
    """Carga configuración desde archivo YAML.

    Args:
        config_path: Path al archivo YAML, o None para omitir

    Returns:
        Diccionario con la configuración, o dict vacío si no hay archivo
    """
    if not config_path:
        return {}

    if not config_path.exists():
        raise FileNotFoundError(f"Archivo de configuración no encontrado: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


# Variable de entorno → (sección, campo)
ENV_VARS: dict[str, tuple[str, str]] = {
    "AUTOINDEX_HOST": ("server", "host"),
    "AUTOINDEX_PORT": ("server", "port"),
    "AUTOINDEX_LOG_LEVEL": ("logging", "level"),
    "AUTOINDEX_TEMPLATE": ("listing", "template"),
}

# Flag de la CLI → (sección, campo, valor). Un valor None copia el del flag;
# los flags --no-* solo desactivan.
CLI_FLAGS: dict[str, tuple[str, str, Any]] = {
    "host": ("server", "host", None),
    "port": ("server", "port", None),
    "no_readme": ("listing", "embed_readme", False),
    "no_nofiles": ("listing", "allow_nofiles", False),
    "template": ("listing", "template", None),
    "log_file": ("logging", "file", None),
    "verbose": ("logging", "verbose", None),
}


def load_env_overrides() -> dict[str, Any]:
    """Overrides desde las variables AUTOINDEX_* (ver ENV_VARS).

    Los valores llegan como strings; Pydantic los convierte al validar.
    """
    overrides: dict[str, Any] = {}
    for name, (section, field) in ENV_VARS.items():
        value = os.environ.get(name)
        if not value:
            continue
        if field == "level":
            value = value.lower()
        overrides.setdefault(section, {})[field] = value
    return overrides


def apply_cli_overrides(config_dict: dict[str, Any], cli_args: dict[str, Any]) -> dict[str, Any]:
    """Aplica los flags de la CLI que el usuario pasó realmente.

    Flags ausentes (None, False, 0) no pisan lo que venga del YAML o del
    entorno; el puerto es la excepción y solo se ignora si es None.
    """
    overrides: dict[str, Any] = {}
    for flag, (section, field, forced) in CLI_FLAGS.items():
        value = cli_args.get(flag)
        given = value is not None if flag == "port" else bool(value)
        if given:
            overrides.setdefault(section, {})[field] = value if forced is None else forced
    return deep_merge(config_dict, overrides)


def load_config(
    config_path: Path | None = None,
    cli_args: dict[str, Any] | None = None,
) -> AppConfig:
    """Carga y valida la configuración completa de la aplicación.

    Args:
        config_path: Path al archivo YAML de configuración
        cli_args: Diccionario con argumentos de la CLI

    Returns:
        AppConfig validado y completo

    Raises:
        FileNotFoundError: Si config_path no existe
        ValidationError: Si la configuración final no es válida
    """
    merged = deep_merge(load_yaml_config(config_path), load_env_overrides())
    merged = apply_cli_overrides(merged, cli_args or {})

    # Pydantic aplica los defaults al validar
    return AppConfig(**merged)
