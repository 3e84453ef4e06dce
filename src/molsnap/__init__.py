"""molsnap: structural identity resolution and spatial queries for macromolecules.

This package provides tools for:
- Parsing mmCIF files into a columnar structure model
- Mapping label chains to author chains, entities and assembly operators
- Enumerating the instances of an entity within an assembly
- Folding SIFTS domain mappings into hierarchical domain records
- Finding the residues surrounding a chain
"""

from molsnap.config import Config
from molsnap.data.parsers.mmcif_parser import MMCIFParser, parse_mmcif
from molsnap.data.parsers.structure import StructureModel

__version__ = "0.1.0"
__all__ = ["Config", "MMCIFParser", "StructureModel", "parse_mmcif", "__version__"]
