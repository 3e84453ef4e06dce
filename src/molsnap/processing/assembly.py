"""Operator instance indices for assemblies.

For one assembly, `ChainInstancesInfo` answers three questions:
which operator instances the assembly uses, which instances are applied to
each label chain, and which label chains each instance is applied to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from molsnap.data.parsers.structure import AssemblyDescriptor, StructureModel
from molsnap.utils import get_or_insert, unique_ordered


logger = logging.getLogger(__name__)


@dataclass
class ChainInstancesInfo:
    """Chain/operator associations of one assembly.

    Attributes:
        all_operators: Operator instance ids used anywhere in the assembly,
            deduplicated in first-seen order
        operators_per_chain: Label chain id -> instance ids applied to it
        chains_per_operator: Instance id -> label chain ids it is applied to
    """
    all_operators: List[str] = field(default_factory=list)
    operators_per_chain: Dict[str, List[str]] = field(default_factory=dict)
    chains_per_operator: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "all_operators": list(self.all_operators),
            "operators_per_chain": {k: list(v) for k, v in self.operators_per_chain.items()},
            "chains_per_operator": {k: list(v) for k, v in self.chains_per_operator.items()},
        }


def build_chain_instances_info(assembly: Optional[AssemblyDescriptor]) -> ChainInstancesInfo:
    """Build the chain/operator indices of one assembly.

    Each operator group with a chain set contributes the full cross product
    of its operators and chains (operators outer, chains inner). Groups
    without a chain set only contribute to `all_operators`.

    Args:
        assembly: Assembly descriptor; None gives an empty result

    Returns:
        ChainInstancesInfo for the assembly
    """
    if assembly is None:
        return ChainInstancesInfo()

    seen_operators: List[str] = []
    operators_per_chain: Dict[str, List[str]] = {}
    chains_per_operator: Dict[str, List[str]] = {}

    for group in assembly.operator_groups:
        for operator in group.operators:
            seen_operators.append(operator.instance_id)
            if group.asym_ids is None:
                continue
            for chain_id in group.asym_ids:
                get_or_insert(operators_per_chain, chain_id, list).append(operator.instance_id)
                get_or_insert(chains_per_operator, operator.instance_id, list).append(chain_id)

    return ChainInstancesInfo(
        all_operators=list(unique_ordered(seen_operators)),
        operators_per_chain=operators_per_chain,
        chains_per_operator=chains_per_operator,
    )


def chain_instances_in_assemblies(model: StructureModel) -> Dict[str, ChainInstancesInfo]:
    """ChainInstancesInfo for every assembly of a model, keyed by assembly id."""
    result: Dict[str, ChainInstancesInfo] = {}
    for assembly in model.assemblies:
        result[assembly.assembly_id] = build_chain_instances_info(assembly)
    return result


def chain_instances_in_assembly(model: StructureModel, assembly_id: str) -> ChainInstancesInfo:
    """ChainInstancesInfo for one assembly; empty if the model has no such assembly."""
    assembly = model.find_assembly(assembly_id)
    if assembly is None:
        logger.debug("Assembly %s not found in %s, using empty info", assembly_id, model.entry_id)
    return build_chain_instances_info(assembly)
