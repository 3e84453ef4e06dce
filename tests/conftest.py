"""Pytest configuration and fixtures for molsnap tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional, Sequence

import numpy as np
import pytest

from molsnap.data.parsers.structure import (
    AssemblyDescriptor,
    AssemblyOperator,
    EntityInfo,
    EntityType,
    OperatorGroup,
    StructureModel,
    StructureModelBuilder,
)


# =============================================================================
# mmCIF Fixtures
# =============================================================================


SAMPLE_MMCIF = """data_1TST
#
_entry.id   1TST
#
_exptl.method           'X-RAY DIFFRACTION'
#
loop_
_entity.id
_entity.type
_entity.pdbx_description
1 polymer     'Test protein'
2 non-polymer 'PROTOPORPHYRIN IX CONTAINING FE'
3 water       water
#
loop_
_atom_site.group_PDB
_atom_site.id
_atom_site.type_symbol
_atom_site.label_atom_id
_atom_site.label_alt_id
_atom_site.label_comp_id
_atom_site.label_asym_id
_atom_site.label_entity_id
_atom_site.label_seq_id
_atom_site.pdbx_PDB_ins_code
_atom_site.Cartn_x
_atom_site.Cartn_y
_atom_site.Cartn_z
_atom_site.occupancy
_atom_site.B_iso_or_equiv
_atom_site.auth_seq_id
_atom_site.auth_asym_id
_atom_site.pdbx_PDB_model_num
ATOM   1 N  N  . ALA A 1 1 ? 0.000  0.000  0.000  1.00 10.00 1   A 1
ATOM   2 C  CA . ALA A 1 1 ? 1.500  0.000  0.000  1.00 11.00 1   A 1
ATOM   3 N  N  . GLY A 1 2 ? 3.000  0.000  0.000  1.00 12.00 2   A 1
ATOM   4 H  H  . GLY A 1 2 ? 3.000  1.000  0.000  1.00 12.50 2   A 1
ATOM   5 N  N  . ALA B 1 1 ? 0.000  6.000  0.000  1.00 13.00 9   B 1
ATOM   6 N  N  . GLY B 1 2 A 0.000  9.000  0.000  1.00 14.00 10  B 1
HETATM 7 FE FE . HEM C 2 . ? 0.000  3.000  0.000  1.00 20.00 101 A 1
HETATM 8 O  O  . HOH D 3 . ? 20.000 20.000 20.000 1.00 30.00 201 A 1
ATOM   9 N  N  . ALA A 1 1 ? 50.000 50.000 50.000 1.00 10.00 1   A 2
#
loop_
_pdbx_struct_assembly.id
_pdbx_struct_assembly.details
_pdbx_struct_assembly.oligomeric_count
1 author_defined_assembly   1
2 software_defined_assembly 2
3 software_defined_assembly 2
#
loop_
_pdbx_struct_assembly_gen.assembly_id
_pdbx_struct_assembly_gen.oper_expression
_pdbx_struct_assembly_gen.asym_id_list
1 1         A,C
2 1,2       A,B,C
3 '(1-2)(3)' A
3 1         D
#
loop_
_pdbx_struct_oper_list.id
_pdbx_struct_oper_list.type
_pdbx_struct_oper_list.matrix[1][1]
_pdbx_struct_oper_list.matrix[1][2]
_pdbx_struct_oper_list.matrix[1][3]
_pdbx_struct_oper_list.vector[1]
_pdbx_struct_oper_list.matrix[2][1]
_pdbx_struct_oper_list.matrix[2][2]
_pdbx_struct_oper_list.matrix[2][3]
_pdbx_struct_oper_list.vector[2]
_pdbx_struct_oper_list.matrix[3][1]
_pdbx_struct_oper_list.matrix[3][2]
_pdbx_struct_oper_list.matrix[3][3]
_pdbx_struct_oper_list.vector[3]
1 'identity operation'         1  0 0 0  0 1  0 0 0 0 1 0
2 'crystal symmetry operation' -1 0 0 0  0 -1 0 0 0 0 1 0
3 'translation'                1  0 0 10 0 1  0 0 0 0 1 0
#
"""


@pytest.fixture
def sample_mmcif_content() -> str:
    """mmCIF text with two protein chains, a heme, a water and three assemblies.

    Chain C (heme iron at 0,3,0) is exactly 3.0 A from the first atoms of
    chains A and B.
    """
    return SAMPLE_MMCIF


@pytest.fixture
def sample_mmcif_file(temp_dir: Path, sample_mmcif_content: str) -> Path:
    """The sample mmCIF written to `1tst.cif`."""
    path = temp_dir / "1tst.cif"
    path.write_text(sample_mmcif_content)
    return path


@pytest.fixture
def sample_model(sample_mmcif_content: str) -> StructureModel:
    """The sample mmCIF parsed into a StructureModel."""
    from molsnap.data.parsers.mmcif_parser import MMCIFParser

    return MMCIFParser().parse_string(sample_mmcif_content)


# =============================================================================
# Model Builder Fixtures
# =============================================================================


@pytest.fixture
def model_factory() -> Callable[..., StructureModel]:
    """Factory building a StructureModel from compact residue descriptions.

    Each residue is `(label_asym_id, auth_asym_id, entity_id, comp_id,
    label_seq_id, auth_seq_id, ins_code, [(x, y, z, element), ...])`.
    """
    def _build(
        residues: Sequence[tuple],
        entity_types: Optional[Dict[str, EntityType]] = None,
        assemblies: Optional[List[AssemblyDescriptor]] = None,
        entry_id: str = "TEST",
    ) -> StructureModel:
        builder = StructureModelBuilder(entry_id)
        atom_id = 0
        for label_asym, auth_asym, entity_id, comp_id, label_seq, auth_seq, ins, atoms in residues:
            for x, y, z, element in atoms:
                atom_id += 1
                builder.add_atom(
                    coords=(x, y, z),
                    type_symbol=element,
                    label_asym_id=label_asym,
                    auth_asym_id=auth_asym,
                    entity_id=entity_id,
                    comp_id=comp_id,
                    label_seq_id=label_seq,
                    auth_seq_id=auth_seq,
                    ins_code=ins,
                    atom_id=atom_id,
                    b_iso=float(atom_id),
                )
        entities = {
            entity_id: EntityInfo(entity_id=entity_id, type=entity_type)
            for entity_id, entity_type in (entity_types or {}).items()
        }
        return builder.build(entities=entities, assemblies=assemblies)
    return _build


@pytest.fixture
def two_chain_model(model_factory) -> StructureModel:
    """Two polymer chains whose nearest atoms are exactly 3.0 A apart.

    Chain A: residues 1-3 along x at y=0; chain B: residues 1-2 at y=3
    (residue B1 sits above A1) and y=10 (B2 is far from everything).
    """
    return model_factory(
        [
            ("A", "A", "1", "ALA", 1, 1, "", [(0.0, 0.0, 0.0, "N"), (1.0, 0.0, 0.0, "C")]),
            ("A", "A", "1", "GLY", 2, 2, "", [(4.0, 0.0, 0.0, "N"), (5.0, 0.0, 0.0, "C")]),
            ("A", "A", "1", "SER", 3, 3, "", [(8.0, 0.0, 0.0, "N"), (9.0, 0.0, 0.0, "O")]),
            ("B", "X", "2", "LYS", 1, 101, "", [(0.0, 3.0, 0.0, "N"), (0.0, 4.0, 0.0, "C")]),
            ("B", "X", "2", "ASP", 2, 101, "A", [(0.0, 10.0, 0.0, "N"), (0.0, 11.0, 0.0, "O")]),
        ],
        entity_types={"1": EntityType.POLYMER, "2": EntityType.POLYMER},
    )


@pytest.fixture
def cross_product_assembly() -> AssemblyDescriptor:
    """One operator group: 2 operators applied to 3 chains."""
    return AssemblyDescriptor(
        assembly_id="1",
        operator_groups=(
            OperatorGroup(
                operators=(
                    AssemblyOperator(instance_id="ASM-1", oper_ids=("1",)),
                    AssemblyOperator(instance_id="ASM-2", oper_ids=("2",)),
                ),
                asym_ids=("A", "B", "C"),
            ),
        ),
    )


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_mmcif_dir(temp_dir: Path) -> Path:
    """Create a temporary directory for mmCIF files."""
    mmcif_dir = temp_dir / "mmcif"
    mmcif_dir.mkdir()
    return mmcif_dir


# =============================================================================
# Skip Markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def assert_arrays_equal():
    """Fixture providing array comparison helper."""
    def _assert_arrays_equal(a: np.ndarray, b: np.ndarray, rtol: float = 1e-5):
        np.testing.assert_allclose(a, b, rtol=rtol)
    return _assert_arrays_equal
