"""YAML rendering and parsing of range configurations."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

import yaml
from yaml.representer import RepresenterError

from rangegen.config import GeneratorConfig
from rangegen.log_config import get_logger

from .assembly import compile_range_config

if TYPE_CHECKING:  # pragma: no cover - import-time types only
    from rangegen.topology import TopologyEdge, TopologyNode

logger = get_logger(__name__)

REQUIRED_SECTIONS: dict[str, type] = {
    "ludus": list,
    "router": dict,
    "network": dict,
    "defaults": dict,
}


_TRAILING_SPACES = re.compile(r" +(?=\n)")


class RangeConfigDumper(yaml.SafeDumper):
    """Safe dumper that writes multi-line strings as ``|`` literal blocks.

    PyYAML refuses block style for text containing tabs or spaces before a
    line break and falls back to an escaped double-quoted scalar. A literal
    block keeps both verbatim, so this dumper still chooses it.
    """

    def analyze_scalar(self, scalar):
        analysis = super().analyze_scalar(scalar)
        if analysis.multiline and not analysis.allow_block:
            relaxed = _TRAILING_SPACES.sub("", scalar.replace("\t", " "))
            if super().analyze_scalar(relaxed).allow_block:
                analysis.allow_block = True
        return analysis


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


RangeConfigDumper.add_representer(str, _represent_str)


class _NoAliasDumper(RangeConfigDumper):
    def ignore_aliases(self, data):  # type: ignore[override]
        return True


def _check_sections(config: Any) -> None:
    if not isinstance(config, dict):
        raise ValueError(
            f"Range configuration must be a mapping, got {type(config).__name__}"
        )
    missing = [name for name in REQUIRED_SECTIONS if name not in config]
    if missing:
        raise ValueError(f"Range configuration is missing sections: {missing}")
    for name, expected in REQUIRED_SECTIONS.items():
        if not isinstance(config[name], expected):
            raise ValueError(
                f"Range configuration section '{name}' must be a {expected.__name__}, "
                f"got {type(config[name]).__name__}"
            )


def serialize_range_config(
    config: dict[str, Any], *, settings: GeneratorConfig | None = None
) -> str:
    """Render a compiled configuration as YAML text.

    The schema comment comes first, followed by a blank line and the document.
    Keys keep their insertion order, lists are written one item per line and
    multi-line strings use literal blocks.

    Args:
        config: Compiled configuration.
        settings: Generator configuration supplying output formatting.

    Returns:
        YAML text ending in a newline.

    Raises:
        ValueError: If a top-level section is missing or has the wrong type,
            or if a value cannot be represented in YAML.
    """
    _check_sections(config)
    formatting = (settings or GeneratorConfig()).output.formatting
    dumper = RangeConfigDumper if formatting.yaml_anchors else _NoAliasDumper

    try:
        body = yaml.dump(
            config,
            Dumper=dumper,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
    except RepresenterError as e:
        raise ValueError(f"Range configuration contains an unsupported value: {e}") from e

    header = formatting.schema_comment
    text = f"{header}\n\n{body}" if header else body
    logger.debug(f"Serialized range configuration ({len(text)} bytes)")
    return text


def parse_range_config(text: str) -> dict[str, Any]:
    """Parse range configuration YAML.

    Raises:
        yaml.YAMLError: If the text is not valid YAML.
        ValueError: If the document is not a mapping.
    """
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("Range configuration document must be a mapping")
    return data


def load_range_config(path: Path) -> dict[str, Any]:
    """Read and parse a range configuration file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Range configuration not found: {path}")
    config = parse_range_config(path.read_text(encoding="utf-8"))
    logger.info(f"Loaded range configuration from {path}")
    return config


def build_range_yaml(
    nodes: Sequence["TopologyNode | dict[str, Any]"],
    edges: Sequence["TopologyEdge | dict[str, Any]"],
    existing_config: dict[str, Any] | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    settings: GeneratorConfig | None = None,
) -> str:
    """Compile a topology and render it as YAML text."""
    config = compile_range_config(
        nodes, edges, existing_config, overrides, settings=settings
    )
    yaml_text = serialize_range_config(config, settings=settings)
    logger.info("Generated range configuration YAML")
    return yaml_text
