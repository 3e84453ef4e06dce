"""Query engine over structure models and annotation records.

- chains: label chain -> author chain / entity, polymer residue counts
- assembly: operator instance indices per assembly
- instances: (chain, instance) pairs of an entity
- domains: SIFTS mapping records -> domain records
- surroundings: residues within a radius of a chain
"""

from molsnap.processing.assembly import (
    ChainInstancesInfo,
    build_chain_instances_info,
    chain_instances_in_assemblies,
    chain_instances_in_assembly,
)
from molsnap.processing.chains import (
    ChainInfo,
    atom_bfactors,
    build_chain_info,
    build_polymer_residue_counts,
    chain_counts_in_assembly,
    elements_in_entities,
    structure_polymer_residue_count,
)
from molsnap.processing.domains import (
    DomainIdCounter,
    domains_from_api_payload,
    extract_domain_mappings,
    reindex_by_entity,
)
from molsnap.processing.instances import (
    list_entity_instances,
    list_instances_in_assembly,
    list_instances_in_model,
)
from molsnap.processing.surroundings import surroundings

__all__ = [
    # Chains
    "ChainInfo",
    "build_chain_info",
    "build_polymer_residue_counts",
    "chain_counts_in_assembly",
    "structure_polymer_residue_count",
    "elements_in_entities",
    "atom_bfactors",
    # Assemblies
    "ChainInstancesInfo",
    "build_chain_instances_info",
    "chain_instances_in_assemblies",
    "chain_instances_in_assembly",
    # Instances
    "list_instances_in_assembly",
    "list_instances_in_model",
    "list_entity_instances",
    # Domains
    "DomainIdCounter",
    "extract_domain_mappings",
    "reindex_by_entity",
    "domains_from_api_payload",
    # Spatial
    "surroundings",
]
