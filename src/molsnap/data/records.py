"""Plain records exchanged between the engine and its consumers.

All records are frozen dataclasses. Records read from the PDBe annotation
API (`EntityRecord`, `AssemblyRecord`, `ModifiedResidueRecord`) come with
small `from_api` constructors that accept the decoded JSON objects. The
`*_from_api` functions read whole per-entry payloads; an entry missing
from the payload yields an empty result.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from molsnap.constants.residues import ION_NAMES, SACCHARIDE_NAMES
from molsnap.utils import get_or_insert


@dataclass(frozen=True)
class ChainInfoEntry:
    """Author chain id and entity id of one label chain."""
    auth_chain_id: str
    entity_id: str


@dataclass(frozen=True)
class EntityInstance:
    """One place where an entity occurs.

    Attributes:
        chain_id: Label chain id
        instance_id: Operator instance id, None for the deposited-model copy
    """
    chain_id: str
    instance_id: Optional[str] = None


@dataclass(frozen=True)
class ResidueLocator:
    """Identifies one residue for selection purposes."""
    label_asym_id: str
    label_seq_id: Optional[int]
    auth_seq_id: Optional[int]
    pdbx_PDB_ins_code: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DomainChunkRecord:
    """One contiguous residue range of a domain.

    Attributes:
        entity_id: label_entity_id, always a string
        chain_id: label_asym_id
        auth_chain_id: auth_asym_id
        start_residue: label_seq_id of the first residue
        end_residue: label_seq_id of the last residue
        segment: 1-based chunk number within the parent domain
    """
    entity_id: str
    chain_id: str
    auth_chain_id: str
    start_residue: Optional[int] = None
    end_residue: Optional[int] = None
    segment: int = 1


@dataclass(frozen=True)
class DomainRecord:
    """A domain (SIFTS mapping) made of one or more chunks.

    Attributes:
        id: Domain identifier
        source: Source database (e.g. "CATH", "Pfam")
        family: Family accession (e.g. "PF00067")
        family_name: Family display name
        chunks: Chunks in input order
    """
    id: str
    source: str
    family: str
    family_name: Optional[str]
    chunks: Tuple[DomainChunkRecord, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EntityRecord:
    """Entity as described by the annotation API.

    Attributes:
        id: Entity id as a string
        name: Molecule name(s) joined with " / "
        type: API molecule type (e.g. "polypeptide(L)", "bound", "water")
        comp_ids: Chemical component ids
        chains: Label chain ids of this entity
    """
    id: str
    name: str = ""
    type: str = ""
    comp_ids: Tuple[str, ...] = ()
    chains: Tuple[str, ...] = ()

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> "EntityRecord":
        """Build from one record of the `pdb/entry/molecules` endpoint."""
        return cls(
            id=str(record["entity_id"]),
            name=" / ".join(record.get("molecule_name") or []),
            type=record.get("molecule_type") or "",
            comp_ids=tuple(record.get("chem_comp_ids") or ()),
            chains=tuple(record.get("in_struct_asyms") or ()),
        )


@dataclass(frozen=True)
class AssemblyRecord:
    """Assembly as described by the annotation API.

    Attributes:
        assembly_id: Assembly id, usually "1", "2" etc.
        form: Usually "homo" or "hetero"
        preferred: Whether this is the preferred assembly of the entry
        name: Description like "monomer", "tetramer"
    """
    assembly_id: str
    form: str = ""
    preferred: bool = False
    name: str = ""

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> "AssemblyRecord":
        return cls(
            assembly_id=str(record["assembly_id"]),
            form=record.get("form") or "",
            preferred=bool(record.get("preferred")),
            name=record.get("name") or "",
        )


@dataclass(frozen=True)
class ModifiedResidueRecord:
    """One instance of a modified residue.

    Attributes:
        entity_id: Entity id as a string
        label_asym_id: Label chain id
        auth_asym_id: Author chain id
        label_seq_id: Residue number (label numbering)
        compound_id: Component code, e.g. "MSE"
        compound_name: Component name, e.g. "SELENOMETHIONINE"
    """
    entity_id: str
    label_asym_id: str
    auth_asym_id: str
    label_seq_id: int
    compound_id: str
    compound_name: str = ""

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> "ModifiedResidueRecord":
        """Build from one record of the `pdb/entry/modified_AA_or_NA` endpoint."""
        return cls(
            entity_id=str(record["entity_id"]),
            label_asym_id=record["struct_asym_id"],
            auth_asym_id=record["chain_id"],
            label_seq_id=record["residue_number"],
            compound_id=record["chem_comp_id"],
            compound_name=record.get("chem_comp_name") or "",
        )


def entities_from_api(entry_id: str, payload: Dict[str, Any]) -> Dict[str, EntityRecord]:
    """Entity records of one entry from a decoded `molecules` payload."""
    entities: Dict[str, EntityRecord] = {}
    for record in payload.get(entry_id) or []:
        entity = EntityRecord.from_api(record)
        entities[entity.id] = entity
    return entities


def assemblies_from_api(entry_id: str, payload: Dict[str, Any]) -> List[AssemblyRecord]:
    """Assembly records of one entry from a decoded `summary` payload."""
    assemblies = []
    for record in payload.get(entry_id) or []:
        for assembly in record.get("assemblies") or []:
            assemblies.append(AssemblyRecord.from_api(assembly))
    return assemblies


def modified_residues_from_api(
    entry_id: str, payload: Dict[str, Any]
) -> List[ModifiedResidueRecord]:
    """Modified residue instances of one entry, in API order."""
    return [ModifiedResidueRecord.from_api(record) for record in payload.get(entry_id) or []]


def entities_in_assemblies_from_api(
    entry_id: str, payload: Dict[str, Any]
) -> Dict[str, List[str]]:
    """Map entity id to the ids of the assemblies containing it.

    Reads a decoded `pdb/entry/assembly` payload. Assembly ids keep the
    order of the assembly records.
    """
    assemblies: Dict[str, List[str]] = {}
    for record in payload.get(entry_id) or []:
        for entity in record.get("entities") or []:
            entity_assemblies = get_or_insert(assemblies, str(entity["entity_id"]), list)
            entity_assemblies.append(str(record["assembly_id"]))
    return assemblies


def auth_chain_coverages_from_api(entry_id: str, payload: Dict[str, Any]) -> Dict[str, int]:
    """Number of observed residues per author chain.

    Reads a decoded `pdb/entry/polymer_coverage` payload and sums
    `end - start + 1` over the observed ranges of each chain. Chains
    listed without observed ranges get 0.
    """
    coverages: Dict[str, int] = {}
    entry = payload.get(entry_id) or {}
    for molecule in entry.get("molecules") or []:
        for chain in molecule.get("chains") or []:
            chain_id = chain["chain_id"]
            coverages.setdefault(chain_id, 0)
            for observed in chain.get("observed") or []:
                start = observed["start"]["residue_number"]
                end = observed["end"]["residue_number"]
                coverages[chain_id] += end - start + 1
    return coverages


def experimental_methods_from_api(entry_id: str, payload: Dict[str, Any]) -> List[str]:
    """Experimental methods of one entry from a decoded `summary` payload."""
    methods = []
    for record in payload.get(entry_id) or []:
        methods.extend(record.get("experimental_method") or [])
    return methods


def preferred_assembly(assemblies: Sequence[AssemblyRecord]) -> Optional[AssemblyRecord]:
    """The assembly flagged as preferred, else the first one, else None."""
    for assembly in assemblies:
        if assembly.preferred:
            return assembly
    return assemblies[0] if assemblies else None


def decide_entity_type(entity: EntityRecord) -> str:
    """Classify an API entity as polymer, branched, ligand, ion or water.

    Single-component bound entities are split into saccharides (branched),
    ions and other ligands by component id.
    """
    if entity.type == "water":
        return "water"
    if entity.type == "bound":
        if len(entity.comp_ids) == 1 and entity.comp_ids[0] in SACCHARIDE_NAMES:
            return "branched"
        if len(entity.comp_ids) == 1 and entity.comp_ids[0] in ION_NAMES:
            return "ion"
        return "ligand"
    if entity.type == "carbohydrate polymer":
        return "branched"
    return "polymer"


def entity_is_ligand(entity: EntityRecord) -> bool:
    return decide_entity_type(entity) == "ligand"


def entity_is_macromolecule(entity: EntityRecord) -> bool:
    return entity.type not in ("bound", "water")
