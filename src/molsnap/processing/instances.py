"""Enumerate the (chain, operator instance) pairs at which an entity occurs."""

from __future__ import annotations

from typing import List, Sequence, Union

from molsnap.data.records import EntityInstance, EntityRecord
from molsnap.processing.assembly import ChainInstancesInfo

EntityChains = Union[EntityRecord, Sequence[str]]


def _entity_chains(entity: EntityChains) -> Sequence[str]:
    if isinstance(entity, EntityRecord):
        return entity.chains
    return entity


def list_instances_in_assembly(entity: EntityChains, info: ChainInstancesInfo) -> List[EntityInstance]:
    """Instances of an entity within an assembly.

    Results are ordered by operator instance first (in `all_operators`
    order), then by the order of chains within that instance.
    """
    chains = set(_entity_chains(entity))
    instances = []
    for instance_id in info.all_operators:
        for chain_id in info.chains_per_operator.get(instance_id, ()):
            if chain_id in chains:
                instances.append(EntityInstance(chain_id=chain_id, instance_id=instance_id))
    return instances


def list_instances_in_model(entity: EntityChains) -> List[EntityInstance]:
    """One deposited-model instance (no operator) per chain of the entity."""
    return [EntityInstance(chain_id=chain_id, instance_id=None) for chain_id in _entity_chains(entity)]


def list_entity_instances(entity: EntityChains, info: ChainInstancesInfo) -> List[EntityInstance]:
    """Instances in the assembly, falling back to the deposited model if there are none."""
    instances = list_instances_in_assembly(entity, info)
    if not instances:
        instances = list_instances_in_model(entity)
    return instances
