"""Command line interface for range configuration generation."""

from __future__ import annotations

import argparse
import json
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import yaml

from rangegen.config import GeneratorConfig
from rangegen.log_config import get_logger

logger = get_logger(__name__)


@contextmanager
def Timer(description: str):
    """Context manager for timing operations with both print and log output.

    Args:
        description: Operation description for timing messages.

    Yields:
        None: Context manager yields nothing.
    """
    print(f"🔄 {description}...")
    logger.info(f"Starting {description}")
    start = time.time()
    try:
        yield
        elapsed = time.time() - start
        print(f"✅ {description} (completed in {elapsed:.1f}s)")
        logger.info(f"Completed {description} in {elapsed:.1f}s")
    except Exception as e:
        elapsed = time.time() - start
        print(f"❌ {description} (failed after {elapsed:.1f}s)")
        logger.error(f"Failed {description} after {elapsed:.1f}s: {e}")
        raise


def _load_settings(settings_path: str | None) -> GeneratorConfig:
    """Load generator settings, or the built-in defaults when no path is given.

    Raises:
        SystemExit: If the settings file is missing or invalid.
    """
    if not settings_path:
        return GeneratorConfig()
    path = Path(settings_path)
    try:
        settings = GeneratorConfig.from_yaml(path)
        logger.info(f"Loaded settings from {path}")
        return settings
    except FileNotFoundError:
        print(f"❌ Settings file not found: {path}")
        print(f"💡 Create one with: cp config.yml {path}")
        logger.error(f"Settings file not found: {path}")
        sys.exit(2)  # Config problem
    except Exception as e:
        logger.error(f"Failed to load settings: {e}")
        print(f"❌ Settings error: {e}")
        print(f"💡 Check YAML syntax in: {path}")
        sys.exit(2)  # Config problem


def _parse_overrides(pairs: list[str] | None) -> dict[str, Any]:
    """Parse ``KEY=VALUE`` pairs; values are read as YAML scalars.

    Raises:
        ValueError: If a pair has no ``=`` or an empty key.
    """
    overrides: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        overrides[key.strip()] = yaml.safe_load(value) if value else ""
    return overrides


def _read_mapping(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping")
    return data


def _output_path(arg: str | None, source: Path, suffix: str) -> Path:
    """Resolve the output file from ``-o``.

    A directory argument receives ``<source_stem><suffix>``; no argument
    writes that name into the current directory.
    """
    if arg:
        out = Path(arg)
        if out.suffix:
            return out
        return out / f"{source.stem}{suffix}"
    return Path.cwd() / f"{source.stem}{suffix}"


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def build_command(args: argparse.Namespace) -> None:
    """Compile an editor topology into a range configuration file.

    Args:
        args: Parsed command line arguments.
    """
    from rangegen.compiler.emit import load_range_config
    from rangegen.range_builder import compile_range_config, serialize_range_config
    from rangegen.topology import load_topology

    settings = _load_settings(args.config)
    try:
        topology_path = Path(args.topology)
        overrides = _parse_overrides(args.set_default)
        existing = load_range_config(Path(args.existing)) if args.existing else None
        output_path = _output_path(args.output, topology_path, "_range.yml")

        with Timer("Range configuration build"):
            nodes, edges = load_topology(topology_path)
            config = compile_range_config(
                nodes, edges, existing, overrides or None, settings=settings
            )
            range_yaml = serialize_range_config(config, settings=settings)
            _write_text(output_path, range_yaml)

        if args.print:
            print("\n" + "=" * 60)
            print("GENERATED RANGE CONFIGURATION:")
            print("=" * 60)
            print(range_yaml)
        print(f"🎉 SUCCESS! Wrote range configuration: {output_path}")
        print(
            f"   VMs: {len(config['ludus'])} | Rules: {len(config['network']['rules'])}"
        )

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        print(f"❌ File not found: {e}")
        sys.exit(3)  # Input failure
    except (ValueError, yaml.YAMLError, json.JSONDecodeError) as e:
        logger.error(f"Invalid input: {e}")
        print(f"❌ Invalid input: {e}")
        sys.exit(3)  # Input failure
    except Exception as e:
        logger.error(f"Build failed: {e}")
        print("💡 Use -v for detailed error information")
        sys.exit(1)  # Runtime error


def wizard_command(args: argparse.Namespace) -> None:
    """Generate a range configuration from a wizard form file.

    Args:
        args: Parsed command line arguments.
    """
    from rangegen.wizard import WizardForm, generate_wizard_yaml

    settings = _load_settings(args.config)
    try:
        form_path = Path(args.form)
        if not form_path.exists():
            raise FileNotFoundError(f"Wizard form not found: {form_path}")
        form = WizardForm.from_dict(_read_mapping(form_path))
        output_path = _output_path(args.output, form_path, "_range.yml")

        with Timer("Wizard range configuration"):
            range_yaml = generate_wizard_yaml(form, settings=settings)
            _write_text(output_path, range_yaml)

        if args.print:
            print(range_yaml)
        print(f"🎉 SUCCESS! Wrote range configuration: {output_path}")

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        print(f"❌ File not found: {e}")
        sys.exit(3)
    except (ValueError, yaml.YAMLError, json.JSONDecodeError) as e:
        logger.error(f"Invalid wizard form: {e}")
        print(f"❌ Invalid wizard form: {e}")
        sys.exit(3)
    except Exception as e:
        logger.error(f"Wizard generation failed: {e}")
        print("💡 Use -v for detailed error information")
        sys.exit(1)


def decompile_command(args: argparse.Namespace) -> None:
    """Convert a range configuration back into an editor topology JSON file.

    Args:
        args: Parsed command line arguments.
    """
    from rangegen.compiler.emit import load_range_config
    from rangegen.range_builder import topology_from_config
    from rangegen.topology import save_topology

    settings = _load_settings(args.config)
    try:
        config_path = Path(args.range_config)
        output_path = _output_path(args.output, config_path, "_topology.json")
        with Timer("Range configuration decompile"):
            nodes, edges = topology_from_config(load_range_config(config_path))
            save_topology(
                nodes,
                edges,
                output_path,
                json_indent=settings.output.formatting.json_indent,
            )
        print(f"🎉 SUCCESS! Wrote topology: {output_path}")
        print(f"   Nodes: {len(nodes)} | Edges: {len(edges)}")

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        print(f"❌ File not found: {e}")
        sys.exit(3)
    except (ValueError, yaml.YAMLError) as e:
        logger.error(f"Invalid range configuration: {e}")
        print(f"❌ Invalid range configuration: {e}")
        sys.exit(3)
    except Exception as e:
        logger.error(f"Decompile failed: {e}")
        print("💡 Use -v for detailed error information")
        sys.exit(1)


def validate_command(args: argparse.Namespace) -> None:
    """Validate a range configuration file.

    Args:
        args: Parsed command line arguments.
    """
    from rangegen.validation import validate_range_config_yaml

    config_path = Path(args.range_config)
    if not config_path.exists():
        print(f"❌ File not found: {config_path}")
        logger.error(f"Range configuration not found: {config_path}")
        sys.exit(3)

    issues = validate_range_config_yaml(
        config_path.read_text(encoding="utf-8"), run_schema=not args.no_schema
    )
    if issues:
        print(f"❌ {len(issues)} validation issue(s) in {config_path}:")
        for issue in issues:
            print(f"   - {issue}")
        sys.exit(3)  # Validation failure
    print(f"✅ {config_path} is valid")


def info_command(args: argparse.Namespace) -> None:
    """Show the VLANs and resource totals of an editor topology.

    Args:
        args: Parsed command line arguments.
    """
    from rich.console import Console
    from rich.table import Table

    from rangegen.compiler.vlans import build_vlan_map
    from rangegen.constants import NODE_KIND_VLAN
    from rangegen.resources import calculate_resource_totals
    from rangegen.topology import VlanPayload, load_topology

    settings = _load_settings(args.config)
    try:
        nodes, edges = load_topology(Path(args.topology))
    except Exception as e:
        print(f"❌ Error loading topology: {e}")
        sys.exit(1)

    vlan_nodes = [n for n in nodes if n.kind == NODE_KIND_VLAN]
    vlan_map = build_vlan_map(vlan_nodes, settings.vlans)

    console = Console()
    table = Table(title=f"Topology: {args.topology}")
    table.add_column("Node")
    table.add_column("Label")
    table.add_column("VLAN", justify="right")
    table.add_column("VMs", justify="right")
    for node in vlan_nodes:
        payload = node.payload
        label = payload.label if isinstance(payload, VlanPayload) else ""
        vm_count = len(payload.vms) if isinstance(payload, VlanPayload) else 0
        number = vlan_map.resolve(node.id)
        if number is None:
            vlan = "special"
        elif node.id in vlan_map.remapped:
            vlan = f"{number} (remapped)"
        else:
            vlan = str(number)
        table.add_row(node.id, label, vlan, str(vm_count))
    console.print(table)

    totals = calculate_resource_totals(nodes)
    console.print(
        f"VMs: {totals.vms} | CPUs: {totals.cpus} | RAM: {totals.ram_gb} GB | "
        f"Edges: {len(edges)}"
    )


def main() -> None:
    """Parse command line arguments and execute the appropriate subcommand.

    Configures logging, parses CLI arguments, and dispatches to the correct
    command function.
    """
    parser = argparse.ArgumentParser(
        prog="rangegen",
        description="Compile range editor topologies into range configuration YAML.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress console output (logs only)",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Generator settings YAML (default: built-in defaults)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Build command
    build_parser = subparsers.add_parser(
        "build", help="Compile a topology into a range configuration"
    )
    build_parser.add_argument("topology", help="Topology file (JSON or YAML)")
    build_parser.add_argument(
        "-e",
        "--existing",
        default=None,
        help="Previously saved range configuration to carry defaults over from",
    )
    build_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output YAML file. Defaults to '<topology_stem>_range.yml' in CWD.",
    )
    build_parser.add_argument(
        "--print",
        action="store_true",
        help="Print generated YAML to stdout",
    )
    build_parser.add_argument(
        "--set-default",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Override a key of the defaults block (repeatable)",
    )
    build_parser.set_defaults(func=build_command)

    # Wizard command
    wizard_parser = subparsers.add_parser(
        "wizard", help="Generate a range configuration from a wizard form"
    )
    wizard_parser.add_argument("form", help="Wizard form file (JSON or YAML)")
    wizard_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output YAML file. Defaults to '<form_stem>_range.yml' in CWD.",
    )
    wizard_parser.add_argument(
        "--print",
        action="store_true",
        help="Print generated YAML to stdout",
    )
    wizard_parser.set_defaults(func=wizard_command)

    # Decompile command
    decompile_parser = subparsers.add_parser(
        "decompile", help="Convert a range configuration into a topology"
    )
    decompile_parser.add_argument("range_config", help="Range configuration YAML")
    decompile_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output JSON file. Defaults to '<config_stem>_topology.json' in CWD.",
    )
    decompile_parser.set_defaults(func=decompile_command)

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate", help="Validate a range configuration"
    )
    validate_parser.add_argument("range_config", help="Range configuration YAML")
    validate_parser.add_argument(
        "--no-schema",
        action="store_true",
        help="Skip JSON Schema validation",
    )
    validate_parser.set_defaults(func=validate_command)

    # Info command
    info_parser = subparsers.add_parser(
        "info", help="Show VLANs and resource totals of a topology"
    )
    info_parser.add_argument("topology", help="Topology file (JSON or YAML)")
    info_parser.set_defaults(func=info_command)

    # Parse arguments and dispatch
    args = parser.parse_args()

    # Configure logging based on arguments
    import logging

    from rangegen.log_config import set_global_log_level

    if args.verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    set_global_log_level(log_level)

    # Suppress print output if --quiet is set
    if args.quiet:
        import builtins

        builtins.print = lambda *args, **kwargs: None

    if not hasattr(args, "func") or args.func is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
