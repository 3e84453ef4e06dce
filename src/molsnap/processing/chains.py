"""Chain-level indices over a StructureModel.

Maps label chain ids to author chain ids and entity ids, counts polymer
residues per chain and per assembly, and exposes per-entity element sets
and per-atom B-factors.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from molsnap.data.parsers.structure import EntityType, StructureModel
from molsnap.data.records import ChainInfoEntry


logger = logging.getLogger(__name__)

ChainInfo = Dict[str, ChainInfoEntry]


def build_chain_info(model: StructureModel) -> ChainInfo:
    """Map each label chain id to its author chain id and entity id.

    If a label chain id occurs on more than one chain row, the first row wins.
    """
    info: ChainInfo = {}
    for i in range(model.num_chains):
        chain_id = model.label_asym_id[i]
        if chain_id in info:
            continue
        info[chain_id] = ChainInfoEntry(
            auth_chain_id=model.auth_asym_id[i],
            entity_id=model.label_entity_id[i],
        )
    return info


def build_polymer_residue_counts(model: StructureModel) -> Dict[str, int]:
    """Number of residues in each polymer chain.

    Relies on residues of a chain being contiguous: the count is the
    residue index of the last atom minus that of the first atom, plus one.
    Chains of non-polymer entities and chains without atoms are skipped.
    """
    counts: Dict[str, int] = {}
    for i in range(model.num_chains):
        if model.entity_type(model.label_entity_id[i]) != EntityType.POLYMER:
            continue
        start, end = model.chain_atom_range(i)
        if end <= start:
            continue
        first_residue = model.residue_index[start]
        last_residue = model.residue_index[end - 1]
        counts[model.label_asym_id[i]] = int(last_residue - first_residue + 1)
    return counts


def chain_counts_in_assembly(model: StructureModel, assembly_id: Optional[str]) -> Dict[str, int]:
    """Number of copies of each label chain in an assembly.

    With no assembly id every chain of the deposited model is counted once.
    An unknown assembly id gives an empty result.
    """
    if assembly_id is None:
        return {chain_id: 1 for chain_id in model.label_asym_id}

    assembly = model.find_assembly(assembly_id)
    if assembly is None:
        logger.debug("Assembly %s not found in %s", assembly_id, model.entry_id)
        return {}

    counts: Dict[str, int] = {}
    for group in assembly.operator_groups:
        if group.asym_ids is None:
            continue
        for chain_id in group.asym_ids:
            counts[chain_id] = counts.get(chain_id, 0) + len(group.operators)
    return counts


def structure_polymer_residue_count(model: StructureModel, assembly_id: Optional[str]) -> int:
    """Total number of polymer residues in an assembly (or the deposited model)."""
    copies = chain_counts_in_assembly(model, assembly_id)
    residues = build_polymer_residue_counts(model)
    return sum(copies[chain_id] * count for chain_id, count in residues.items() if chain_id in copies)


def elements_in_entities(model: StructureModel) -> Dict[str, List[str]]:
    """Sorted distinct element symbols of each entity."""
    elements: Dict[str, set] = {}
    for i in range(model.num_chains):
        start, end = model.chain_atom_range(i)
        symbols = elements.setdefault(model.label_entity_id[i], set())
        symbols.update(str(s) for s in model.type_symbol[start:end])
    return {entity_id: sorted(symbols) for entity_id, symbols in elements.items()}


def atom_bfactors(model: StructureModel) -> List[Tuple[int, float]]:
    """(atom id, B-factor) pairs in atom order."""
    return [(int(a), float(b)) for a, b in zip(model.atom_id, model.b_iso)]
