"""
Chemical component name sets.

Used to classify single-component ("bound") entities of an annotation
record into ions, saccharides and other ligands.
"""

from __future__ import annotations

from typing import Final, FrozenSet

# =============================================================================
# Ions
# =============================================================================

ION_NAMES: Final[FrozenSet[str]] = frozenset([
    # Monovalent
    "NA", "K", "LI", "RB", "CS", "AG", "CU1", "TL",
    "CL", "BR", "F", "IOD", "I",

    # Divalent
    "MG", "CA", "ZN", "FE2", "MN", "CO", "NI", "CU",
    "CD", "BA", "SR", "HG", "PB", "PT",

    # Trivalent and higher
    "FE", "AL", "CR", "GD", "LA", "TB", "YB", "EU", "AU3",

    # Polyatomic
    "NH4", "OH", "SO4", "PO4", "NO3", "CO3", "SCN", "AZI",
])

# =============================================================================
# Saccharides
# =============================================================================

SACCHARIDE_NAMES: Final[FrozenSet[str]] = frozenset([
    # Hexoses
    "GLC", "BGC", "GAL", "GLA", "MAN", "BMA", "FUC", "FUL",
    "ALL", "AFD", "GUP", "GL0", "TAL", "ZDO", "IDO", "Z0H",

    # N-acetyl hexosamines
    "NAG", "NDG", "NGA", "A2G", "BM3", "BM7",

    # Pentoses
    "XYS", "XYP", "ARA", "ARB", "AHR", "RIB", "LYX",

    # Sialic acids and uronic acids
    "SIA", "SLB", "NGC", "NGE", "GCU", "BDP", "IDR",

    # Disaccharides with a single component id
    "SUC", "LAT", "LBT", "MAL", "TRE", "CBI",
])
