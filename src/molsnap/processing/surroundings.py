"""Residues within a distance of a chain.

The query works directly on the atom coordinate columns of a
StructureModel. Atoms of the target chain define an axis-aligned bounding
box which, expanded by the radius, rejects most atoms cheaply; survivors
are tested against every target atom with squared distances.

No spatial index is built. The cost is O(N_candidates x N_target) distance
evaluations, which is fine for a single deposited model but not meant for
large symmetry-expanded assemblies.
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np
from scipy.spatial.distance import cdist

from molsnap.data.parsers.structure import StructureModel
from molsnap.data.records import ResidueLocator
from molsnap.errors import ChainNotFound


logger = logging.getLogger(__name__)

# Candidate atoms evaluated per cdist call
DEFAULT_BLOCK_SIZE = 4096


def surroundings(
    model: StructureModel,
    target_chain_id: str,
    radius: float,
    block_size: int = DEFAULT_BLOCK_SIZE,
) -> List[ResidueLocator]:
    """Whole residues of other chains with an atom within `radius` of the target chain.

    Residues are reported in atom order, each once. Deduplication only
    compares with the previously reported residue, so residue atoms must be
    stored contiguously; this is checked before the query runs.

    Args:
        model: Structure model to search
        target_chain_id: Label chain id of the target chain
        radius: Distance cutoff in Angstroms (inclusive)
        block_size: Number of candidate atoms per distance block

    Returns:
        Residue locators in ascending atom order

    Raises:
        ChainNotFound: If no chain has this label chain id.
        ModelInvariantError: If residue atoms are not stored contiguously.
    """
    chain_index = model.find_chain_index(target_chain_id)
    if chain_index < 0:
        raise ChainNotFound(target_chain_id)
    if radius <= 0:
        logger.debug("Non-positive radius %s for chain %s", radius, target_chain_id)

    model.check_residue_contiguity()

    start, end = model.chain_atom_range(chain_index)
    if end <= start:
        return []

    coords = model.coords
    target = coords[start:end]
    box_min = target.min(axis=0) - radius
    box_max = target.max(axis=0) + radius

    in_box = np.all((coords >= box_min) & (coords <= box_max), axis=1)
    in_box[start:end] = False
    candidates = np.flatnonzero(in_box)

    radius_sq = radius * radius
    accepted = []
    for offset in range(0, len(candidates), block_size):
        block = candidates[offset:offset + block_size]
        dist_sq = cdist(coords[block], target, "sqeuclidean")
        accepted.append(block[np.any(dist_sq <= radius_sq, axis=1)])

    logger.debug(
        "Chain %s radius %s: %d atoms in box, %d accepted",
        target_chain_id, radius, len(candidates), sum(len(a) for a in accepted),
    )
    if not accepted:
        return []

    residues = model.residue_index[np.concatenate(accepted)]
    if len(residues) == 0:
        return []
    keep = np.ones(len(residues), dtype=bool)
    keep[1:] = residues[1:] != residues[:-1]

    return [_residue_locator(model, int(r)) for r in residues[keep]]


def _residue_locator(model: StructureModel, residue: int) -> ResidueLocator:
    chain = model.chain_index[model.residue_offsets[residue]]
    return ResidueLocator(
        label_asym_id=model.label_asym_id[chain],
        label_seq_id=model.label_seq_id[residue],
        auth_seq_id=model.auth_seq_id[residue],
        pdbx_PDB_ins_code=model.ins_code[residue],
    )
