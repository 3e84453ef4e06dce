"""Columnar structure model used by the identity and spatial query engine.

This module provides the in-memory representation of one deposited model:
- A flat atom table (coordinates, element symbol, B-factor, atom id)
- Residues as contiguous atom ranges (offset table)
- Chains as contiguous atom ranges carrying label/author chain ids and an entity id
- An entity table with mmCIF entity types
- Assembly descriptors (operator groups applied to label chains)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from molsnap.errors import AssemblyNotFound, ModelInvariantError


class EntityType(str, Enum):
    """Entity types as found in mmCIF `_entity.type`."""

    POLYMER = "polymer"
    NON_POLYMER = "non-polymer"
    BRANCHED = "branched"
    MACROLIDE = "macrolide"
    WATER = "water"
    UNKNOWN = "unknown"

    @classmethod
    def from_mmcif(cls, value: Optional[str]) -> "EntityType":
        """Map an mmCIF type string to an EntityType (UNKNOWN if unrecognized)."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class EntityInfo:
    """One entity of the deposited model.

    Attributes:
        entity_id: Entity identifier (label_entity_id)
        type: Entity type classification
        description: Optional description (pdbx_description)
    """
    entity_id: str
    type: EntityType = EntityType.UNKNOWN
    description: Optional[str] = None


@dataclass(frozen=True)
class AssemblyOperator:
    """One applied symmetry operator within an assembly.

    The transformation itself is carried for completeness; the engine only
    relies on `instance_id`.

    Attributes:
        instance_id: Globally unique name of this applied operator (e.g. "ASM-1")
        oper_ids: mmCIF operator ids composed into this operator
        rotation: Optional 3x3 rotation matrix
        translation: Optional translation vector
    """
    instance_id: str
    oper_ids: Tuple[str, ...] = ()
    rotation: Optional[np.ndarray] = field(default=None, compare=False, repr=False)
    translation: Optional[np.ndarray] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class OperatorGroup:
    """A list of operators applied to an optional set of label chains."""
    operators: Tuple[AssemblyOperator, ...] = ()
    asym_ids: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class AssemblyDescriptor:
    """Definition of one assembly as an ordered list of operator groups.

    Attributes:
        assembly_id: Assembly identifier (e.g. "1")
        operator_groups: Ordered operator groups
        details: Description from mmCIF (e.g. "author_defined_assembly")
        oligomeric_count: Number of chains in the assembly, if declared
    """
    assembly_id: str
    operator_groups: Tuple[OperatorGroup, ...] = ()
    details: Optional[str] = None
    oligomeric_count: Optional[int] = None


@dataclass
class StructureModel:
    """Flat atom table partitioned into residues and chains.

    Residue `i` owns atoms `residue_offsets[i]:residue_offsets[i + 1]` and
    chain `j` owns atoms `chain_offsets[j]:chain_offsets[j + 1]`. Chain
    boundaries must fall on residue boundaries.

    Attributes:
        entry_id: Entry identifier (e.g. "1ABC")
        x, y, z: Atom coordinates in Angstroms, shape (N,)
        type_symbol: Element symbol per atom
        b_iso: Temperature factor per atom
        atom_id: Atom serial (`_atom_site.id`) per atom
        residue_offsets: Atom offsets of residues, shape (R + 1,)
        label_seq_id: label_seq_id per residue (None for non-polymers)
        auth_seq_id: auth_seq_id per residue
        ins_code: Insertion code per residue ("" if absent)
        comp_id: Component id per residue
        chain_offsets: Atom offsets of chains, shape (C + 1,)
        label_asym_id: Label chain id per chain
        auth_asym_id: Author chain id per chain
        label_entity_id: Entity id per chain
        entities: Entity table keyed by entity id
        assemblies: Assembly descriptors in file order
    """
    entry_id: str
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    type_symbol: np.ndarray
    b_iso: np.ndarray
    atom_id: np.ndarray
    residue_offsets: np.ndarray
    label_seq_id: List[Optional[int]]
    auth_seq_id: List[Optional[int]]
    ins_code: List[str]
    comp_id: List[str]
    chain_offsets: np.ndarray
    label_asym_id: List[str]
    auth_asym_id: List[str]
    label_entity_id: List[str]
    entities: Dict[str, EntityInfo] = field(default_factory=dict)
    assemblies: List[AssemblyDescriptor] = field(default_factory=list)

    def __post_init__(self):
        self.x = np.asarray(self.x, dtype=np.float64)
        self.y = np.asarray(self.y, dtype=np.float64)
        self.z = np.asarray(self.z, dtype=np.float64)
        self.b_iso = np.asarray(self.b_iso, dtype=np.float64)
        self.atom_id = np.asarray(self.atom_id, dtype=np.int64)
        self.type_symbol = np.asarray(self.type_symbol, dtype=object)
        self.residue_offsets = np.asarray(self.residue_offsets, dtype=np.int64)
        self.chain_offsets = np.asarray(self.chain_offsets, dtype=np.int64)
        self.validate()
        # atom -> residue and atom -> chain lookups
        self.residue_index = np.repeat(
            np.arange(self.num_residues, dtype=np.int64), np.diff(self.residue_offsets)
        )
        self.chain_index = np.repeat(
            np.arange(self.num_chains, dtype=np.int64), np.diff(self.chain_offsets)
        )

    @property
    def num_atoms(self) -> int:
        """Number of atoms."""
        return len(self.x)

    @property
    def num_residues(self) -> int:
        """Number of residues."""
        return len(self.residue_offsets) - 1

    @property
    def num_chains(self) -> int:
        """Number of chains."""
        return len(self.chain_offsets) - 1

    @property
    def coords(self) -> np.ndarray:
        """Atom coordinates as an (N, 3) array."""
        return np.stack([self.x, self.y, self.z], axis=1)

    def validate(self) -> None:
        """Check column lengths and the residue/chain offset tables.

        Raises:
            ModelInvariantError: If offsets are not ascending, do not cover
                all atoms, or a chain boundary splits a residue.
        """
        n_atoms = len(self.x)
        if not (len(self.y) == len(self.z) == n_atoms):
            raise ModelInvariantError("Coordinate arrays differ in length")
        if len(self.type_symbol) != n_atoms or len(self.atom_id) != n_atoms \
                or len(self.b_iso) != n_atoms:
            raise ModelInvariantError("Atom columns differ in length")

        for name, offsets in (("residue", self.residue_offsets), ("chain", self.chain_offsets)):
            if len(offsets) == 0 or offsets[0] != 0 or offsets[-1] != n_atoms:
                raise ModelInvariantError(
                    f"{name.capitalize()} offsets must start at 0 and end at {n_atoms}"
                )
            if np.any(np.diff(offsets) < 0):
                raise ModelInvariantError(f"{name.capitalize()} offsets are not ascending")

        n_res = len(self.residue_offsets) - 1
        for name, column in (
            ("label_seq_id", self.label_seq_id),
            ("auth_seq_id", self.auth_seq_id),
            ("ins_code", self.ins_code),
            ("comp_id", self.comp_id),
        ):
            if len(column) != n_res:
                raise ModelInvariantError(f"Residue column {name} has wrong length")

        n_chains = len(self.chain_offsets) - 1
        for name, column in (
            ("label_asym_id", self.label_asym_id),
            ("auth_asym_id", self.auth_asym_id),
            ("label_entity_id", self.label_entity_id),
        ):
            if len(column) != n_chains:
                raise ModelInvariantError(f"Chain column {name} has wrong length")

        split = np.setdiff1d(self.chain_offsets, self.residue_offsets)
        if len(split):
            raise ModelInvariantError(
                "Chain boundaries do not align with residue boundaries",
                {"atom_offsets": split.tolist()},
            )

    def check_residue_contiguity(self) -> None:
        """Check that no chain or residue is split into non-adjacent rows.

        Row-based offsets guarantee that each row is contiguous, but a file
        that returns to an earlier label chain opens a second chain row, and
        a file whose atoms interleave two residues (e.g. alternate conformers
        stored out of order) produces the same residue twice within a chain.

        Raises:
            ModelInvariantError: If a label chain id repeats on two chain
                rows or a residue key repeats within a chain.
        """
        seen_chains: Dict[str, int] = {}
        for chain_index, chain_id in enumerate(self.label_asym_id):
            if chain_id in seen_chains:
                raise ModelInvariantError(
                    "Chain atoms are not stored contiguously",
                    {"chain": chain_id, "rows": [seen_chains[chain_id], chain_index]},
                )
            seen_chains[chain_id] = chain_index

        n_res = self.num_residues
        residue_chain = np.searchsorted(
            self.chain_offsets, self.residue_offsets[:-1], side="right"
        ) - 1
        seen = set()
        for i in range(n_res):
            key = (
                int(residue_chain[i]),
                self.label_seq_id[i],
                self.auth_seq_id[i],
                self.ins_code[i],
                self.comp_id[i],
            )
            if key in seen:
                raise ModelInvariantError(
                    "Residue atoms are not stored contiguously",
                    {
                        "chain": self.label_asym_id[key[0]],
                        "label_seq_id": key[1],
                        "auth_seq_id": key[2],
                        "ins_code": key[3],
                    },
                )
            seen.add(key)

    def entity_type(self, entity_id: str) -> EntityType:
        """Return the type of an entity (UNKNOWN if the entity is not listed)."""
        entity = self.entities.get(entity_id)
        return entity.type if entity is not None else EntityType.UNKNOWN

    def chain_atom_range(self, chain_index: int) -> Tuple[int, int]:
        """Atom index range [from, to) of a chain row."""
        return int(self.chain_offsets[chain_index]), int(self.chain_offsets[chain_index + 1])

    def find_chain_index(self, label_asym_id: str) -> int:
        """Return the first chain row with this label chain id, or -1."""
        for i, chain_id in enumerate(self.label_asym_id):
            if chain_id == label_asym_id:
                return i
        return -1

    def find_assembly(self, assembly_id: Optional[str]) -> Optional[AssemblyDescriptor]:
        """Look up an assembly by id (case-insensitive), None if absent."""
        if assembly_id is None:
            return None
        wanted = assembly_id.lower()
        for assembly in self.assemblies:
            if assembly.assembly_id.lower() == wanted:
                return assembly
        return None

    def get_assembly(self, assembly_id: str) -> AssemblyDescriptor:
        """Look up an assembly by id.

        Raises:
            AssemblyNotFound: If no assembly has this id.
        """
        assembly = self.find_assembly(assembly_id)
        if assembly is None:
            raise AssemblyNotFound(assembly_id)
        return assembly


class StructureModelBuilder:
    """Incrementally builds a StructureModel from atoms in file order.

    A new residue starts whenever the residue key (chain, label_seq_id,
    auth_seq_id, ins_code) differs from the previous atom's; a new chain
    starts whenever the label chain id differs from the previous atom's.
    Records that come back to an earlier chain therefore produce a second
    chain row with the same label id.
    """

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        self._x: List[float] = []
        self._y: List[float] = []
        self._z: List[float] = []
        self._type_symbol: List[str] = []
        self._b_iso: List[float] = []
        self._atom_id: List[int] = []
        self._residue_offsets: List[int] = []
        self._label_seq_id: List[Optional[int]] = []
        self._auth_seq_id: List[Optional[int]] = []
        self._ins_code: List[str] = []
        self._comp_id: List[str] = []
        self._chain_offsets: List[int] = []
        self._label_asym_id: List[str] = []
        self._auth_asym_id: List[str] = []
        self._label_entity_id: List[str] = []
        self._last_chain: Optional[str] = None
        self._last_residue: Optional[Tuple] = None

    @property
    def num_atoms(self) -> int:
        return len(self._x)

    def add_atom(
        self,
        coords: Sequence[float],
        type_symbol: str,
        label_asym_id: str,
        auth_asym_id: str,
        entity_id: str,
        comp_id: str,
        label_seq_id: Optional[int],
        auth_seq_id: Optional[int],
        ins_code: str = "",
        atom_id: int = 0,
        b_iso: float = 0.0,
    ) -> None:
        """Append one atom, opening a new chain and/or residue when needed."""
        index = len(self._x)
        if label_asym_id != self._last_chain:
            self._chain_offsets.append(index)
            self._label_asym_id.append(label_asym_id)
            self._auth_asym_id.append(auth_asym_id)
            self._label_entity_id.append(entity_id)
            self._last_chain = label_asym_id
            self._last_residue = None

        residue_key = (label_asym_id, label_seq_id, auth_seq_id, ins_code, comp_id)
        if residue_key != self._last_residue:
            self._residue_offsets.append(index)
            self._label_seq_id.append(label_seq_id)
            self._auth_seq_id.append(auth_seq_id)
            self._ins_code.append(ins_code)
            self._comp_id.append(comp_id)
            self._last_residue = residue_key

        x, y, z = coords
        self._x.append(float(x))
        self._y.append(float(y))
        self._z.append(float(z))
        self._type_symbol.append(type_symbol)
        self._b_iso.append(float(b_iso))
        self._atom_id.append(int(atom_id))

    def build(
        self,
        entities: Optional[Dict[str, EntityInfo]] = None,
        assemblies: Optional[List[AssemblyDescriptor]] = None,
    ) -> StructureModel:
        """Finish the model. Entities referenced by chains but not listed get type UNKNOWN."""
        n_atoms = len(self._x)
        entities = dict(entities or {})
        for entity_id in self._label_entity_id:
            entities.setdefault(entity_id, EntityInfo(entity_id=entity_id))

        return StructureModel(
            entry_id=self.entry_id,
            x=np.array(self._x, dtype=np.float64),
            y=np.array(self._y, dtype=np.float64),
            z=np.array(self._z, dtype=np.float64),
            type_symbol=np.array(self._type_symbol, dtype=object),
            b_iso=np.array(self._b_iso, dtype=np.float64),
            atom_id=np.array(self._atom_id, dtype=np.int64),
            residue_offsets=np.array(self._residue_offsets + [n_atoms], dtype=np.int64),
            label_seq_id=list(self._label_seq_id),
            auth_seq_id=list(self._auth_seq_id),
            ins_code=list(self._ins_code),
            comp_id=list(self._comp_id),
            chain_offsets=np.array(self._chain_offsets + [n_atoms], dtype=np.int64),
            label_asym_id=list(self._label_asym_id),
            auth_asym_id=list(self._auth_asym_id),
            label_entity_id=list(self._label_entity_id),
            entities=entities,
            assemblies=list(assemblies or []),
        )
