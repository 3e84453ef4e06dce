"""Error types raised by molsnap and JSON error payload helpers."""

from __future__ import annotations

from typing import Dict, Optional


class MolsnapError(Exception):
    """Base exception type for molsnap.

    Attributes:
        code: Stable error identifier
        message: Human-readable error message
        details: Optional detail payload for debugging
    """

    code = "molsnap_error"

    def __init__(self, message: str, details: Optional[object] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_result(self) -> Dict[str, object]:
        """Return a JSON-ready error payload."""
        return error_result(self.code, self.message, self.details)


class ChainNotFound(MolsnapError):
    """A label chain id does not exist in the structure model."""

    code = "chain_not_found"

    def __init__(self, chain_id: str) -> None:
        super().__init__(f"Chain {chain_id} not found", {"chain_id": chain_id})
        self.chain_id = chain_id


class AssemblyNotFound(MolsnapError):
    """An assembly id does not exist in the symmetry metadata."""

    code = "assembly_not_found"

    def __init__(self, assembly_id: str) -> None:
        super().__init__(
            f"Assembly {assembly_id} not found", {"assembly_id": assembly_id}
        )
        self.assembly_id = assembly_id


class ModelNotFound(MolsnapError):
    """No structure file could be located for an entry."""

    code = "model_not_found"


class ModelInvariantError(MolsnapError):
    """Atoms or residues are not stored contiguously in ascending order."""

    code = "model_invariant"


class MMCIFParseError(MolsnapError):
    """The mmCIF content lacks data required to build a model."""

    code = "mmcif_parse_error"


def error_result(code: str, message: str, details: Optional[object] = None) -> Dict[str, object]:
    """Build a JSON-ready error payload."""
    return {"ok": False, "error": {"code": code, "message": message, "details": details}}
