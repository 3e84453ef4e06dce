"""Command-line interface for molsnap.

Provides CLI commands for:
- Chain info and polymer residue counts
- Assembly operator indices and entity instances
- Residue surroundings of a chain
- Domain records from PDBe mapping payloads
- Configuration files

Every query command prints a JSON document on stdout.
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, List, Optional

import yaml

from molsnap.config import Config
from molsnap.data.parsers.mmcif_parser import MMCIFParser
from molsnap.data.parsers.structure import StructureModel
from molsnap.data.providers import LocalModelProvider
from molsnap.errors import MolsnapError
from molsnap.processing.assembly import (
    ChainInstancesInfo,
    chain_instances_in_assemblies,
    chain_instances_in_assembly,
)
from molsnap.processing.chains import (
    build_chain_info,
    build_polymer_residue_counts,
    chain_counts_in_assembly,
    structure_polymer_residue_count,
)
from molsnap.processing.domains import domains_from_api_payload, reindex_by_entity
from molsnap.processing.instances import list_entity_instances
from molsnap.processing.surroundings import surroundings
from molsnap.utils import Timer, setup_logging

logger = logging.getLogger("molsnap.cli")


def load_config(args: argparse.Namespace) -> Config:
    """Configuration from `--config` if given, else defaults and environment."""
    if getattr(args, "config", None):
        return Config.from_yaml(args.config)
    return Config()


def configure_logging(args: argparse.Namespace, config: Config) -> None:
    level = logging.DEBUG if args.verbose else config.logging.level
    setup_logging(level=level, log_file=config.logging.file, name="molsnap")


def load_model(structure: str, config: Config) -> StructureModel:
    """Parse a structure file, or look up an entry id in the configured directory."""
    parser = MMCIFParser(model_num=config.data.model_num)
    path = Path(structure)
    if path.is_file():
        return parser.parse(path)
    return LocalModelProvider(config.data.mmcif_dir, parser=parser).get_model(structure)


def to_jsonable(value: Any) -> Any:
    """Convert records, dicts and lists of records into JSON-ready values."""
    if isinstance(value, ChainInstancesInfo):
        return value.to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def emit(result: Any) -> None:
    print(json.dumps({"ok": True, "result": to_jsonable(result)}, indent=2))


def cmd_chains(args: argparse.Namespace) -> int:
    """Chain info command."""
    model = load_model(args.structure, args.cfg)
    emit({"entry_id": model.entry_id, "chains": build_chain_info(model)})
    return 0


def cmd_residue_counts(args: argparse.Namespace) -> int:
    """Polymer residue counts command."""
    model = load_model(args.structure, args.cfg)
    emit({
        "entry_id": model.entry_id,
        "assembly_id": args.assembly,
        "chains": build_polymer_residue_counts(model),
        "copies": chain_counts_in_assembly(model, args.assembly),
        "total": structure_polymer_residue_count(model, args.assembly),
    })
    return 0


def cmd_assemblies(args: argparse.Namespace) -> int:
    """Assembly operator indices command."""
    model = load_model(args.structure, args.cfg)
    emit(chain_instances_in_assemblies(model))
    return 0


def cmd_instances(args: argparse.Namespace) -> int:
    """Entity instances command."""
    model = load_model(args.structure, args.cfg)
    chains = [
        chain_id for chain_id, entry in build_chain_info(model).items()
        if entry.entity_id == args.entity
    ]
    if not chains:
        logger.warning("Entity %s has no chains in %s", args.entity, model.entry_id)

    if args.assembly is None:
        info = ChainInstancesInfo()
    else:
        info = chain_instances_in_assembly(model, args.assembly)
    emit(list_entity_instances(chains, info))
    return 0


def cmd_surroundings(args: argparse.Namespace) -> int:
    """Residue surroundings command."""
    config = args.cfg
    model = load_model(args.structure, config)
    radius = args.radius if args.radius is not None else config.surroundings.radius

    with Timer(f"surroundings {args.chain}", log_level=logging.DEBUG, logger=logger):
        residues = surroundings(
            model, args.chain, radius, block_size=config.surroundings.block_size
        )
    logger.info("%d residues within %.2f A of chain %s", len(residues), radius, args.chain)
    emit(residues)
    return 0


def cmd_domains(args: argparse.Namespace) -> int:
    """Domain records command."""
    with open(args.payload) as f:
        protein = json.load(f)
    nucleic = None
    if args.nucleic:
        with open(args.nucleic) as f:
            nucleic = json.load(f)

    domains = domains_from_api_payload(args.entry, protein, nucleic)
    if args.by_entity:
        emit(reindex_by_entity(domains))
    else:
        emit(domains)
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Configuration command."""
    if args.subcmd == "show":
        print(yaml.dump(args.cfg.to_dict(), default_flow_style=False))

    elif args.subcmd == "init":
        output_path = Path(args.output or "molsnap.yaml")
        Config().to_yaml(output_path)
        print(f"Created configuration file: {output_path}")

    else:
        logger.error("Missing config subcommand (show or init)")
        return 1

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="molsnap",
        description="molsnap - structural identity resolution and spatial queries",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    structure_help = "mmCIF file, or entry id looked up in the configured mmCIF directory"

    chains_parser = subparsers.add_parser("chains", help="Label chain to author chain/entity map")
    chains_parser.add_argument("structure", help=structure_help)
    chains_parser.set_defaults(func=cmd_chains)

    counts_parser = subparsers.add_parser("residue-counts", help="Polymer residue counts")
    counts_parser.add_argument("structure", help=structure_help)
    counts_parser.add_argument("--assembly", help="Assembly id (deposited model if omitted)")
    counts_parser.set_defaults(func=cmd_residue_counts)

    asm_parser = subparsers.add_parser("assemblies", help="Operator indices of every assembly")
    asm_parser.add_argument("structure", help=structure_help)
    asm_parser.set_defaults(func=cmd_assemblies)

    inst_parser = subparsers.add_parser("instances", help="Chain/operator instances of an entity")
    inst_parser.add_argument("structure", help=structure_help)
    inst_parser.add_argument("--entity", required=True, help="Entity id")
    inst_parser.add_argument("--assembly", help="Assembly id (deposited model if omitted)")
    inst_parser.set_defaults(func=cmd_instances)

    sur_parser = subparsers.add_parser("surroundings", help="Residues near a chain")
    sur_parser.add_argument("structure", help=structure_help)
    sur_parser.add_argument("--chain", required=True, help="Label chain id of the target chain")
    sur_parser.add_argument("--radius", type=float, help="Distance cutoff in Angstroms")
    sur_parser.set_defaults(func=cmd_surroundings)

    dom_parser = subparsers.add_parser("domains", help="Domain records from PDBe mapping JSON")
    dom_parser.add_argument("payload", help="Decoded mappings/{entry} JSON file")
    dom_parser.add_argument("--entry", required=True, help="Entry id (top-level key of the payload)")
    dom_parser.add_argument("--nucleic", help="nucleic_mappings/{entry} JSON file")
    dom_parser.add_argument("--by-entity", action="store_true", help="Group domains by entity")
    dom_parser.set_defaults(func=cmd_domains)

    cfg_parser = subparsers.add_parser("config", help="Configuration operations")
    cfg_subparsers = cfg_parser.add_subparsers(dest="subcmd")
    cfg_subparsers.add_parser("show", help="Show configuration")
    cfg_init = cfg_subparsers.add_parser("init", help="Initialize config file")
    cfg_init.add_argument("-o", "--output", help="Output file path")
    cfg_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        args.cfg = load_config(args)
        configure_logging(args, args.cfg)
        return args.func(args)
    except MolsnapError as e:
        logger.error("%s: %s", e.code, e.message)
        print(json.dumps(e.to_result(), indent=2))
        return 1


if __name__ == "__main__":
    sys.exit(main())
