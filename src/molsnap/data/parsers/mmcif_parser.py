"""mmCIF file parser producing a columnar StructureModel.

This module reads the parts of an mmCIF file the query engine needs:
- `_atom_site` for coordinates, label/author chain ids, residue numbering
- `_entity` for entity types
- `_pdbx_struct_assembly`, `_pdbx_struct_assembly_gen` and
  `_pdbx_struct_oper_list` for assembly operator groups
"""

from __future__ import annotations

import gzip
import logging
from itertools import product
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Tuple, Union

import numpy as np

from molsnap.data.parsers.structure import (
    AssemblyDescriptor,
    AssemblyOperator,
    EntityInfo,
    EntityType,
    OperatorGroup,
    StructureModel,
    StructureModelBuilder,
)
from molsnap.errors import MMCIFParseError


logger = logging.getLogger(__name__)


class MMCIFParser:
    """Parser for text mmCIF files.

    Only the first data block and a single model (`pdbx_PDB_model_num`)
    are read. Atoms are kept in file order so that the contiguity of
    residues and chains reflects the file.
    """

    def __init__(
        self,
        model_num: Optional[int] = None,
        remove_hydrogens: bool = False,
    ):
        """Initialize the parser.

        Args:
            model_num: Model number to read (first model in the file if None)
            remove_hydrogens: Drop hydrogen and deuterium atoms
        """
        self.model_num = model_num
        self.remove_hydrogens = remove_hydrogens

    def parse(
        self,
        file_or_path: Union[str, Path, TextIO],
        entry_id: Optional[str] = None,
    ) -> StructureModel:
        """Parse an mmCIF file.

        Args:
            file_or_path: Path to mmCIF file (optionally gzipped) or file-like object
            entry_id: Entry id to use instead of the one declared in the file

        Returns:
            Parsed StructureModel
        """
        content = self._read_file(file_or_path)
        return self.parse_string(content, entry_id=entry_id)

    def parse_string(self, content: str, entry_id: Optional[str] = None) -> StructureModel:
        """Parse mmCIF content held in memory."""
        data = self._parse_mmcif_data(content)
        entry_id = entry_id or self._extract_entry_id(data)

        builder = StructureModelBuilder(entry_id)
        self._parse_atom_site(data, builder)
        entities = self._parse_entities(data)
        assemblies = self._parse_assemblies(data)

        model = builder.build(entities=entities, assemblies=assemblies)
        logger.debug(
            "Parsed %s: %d atoms, %d residues, %d chains, %d assemblies",
            entry_id, model.num_atoms, model.num_residues, model.num_chains,
            len(model.assemblies),
        )
        return model

    def _read_file(self, file_or_path: Union[str, Path, TextIO]) -> str:
        """Read file content from path or file object."""
        if isinstance(file_or_path, (str, Path)):
            path = Path(file_or_path)
            if path.suffix == ".gz":
                with gzip.open(path, "rt") as f:
                    return f.read()
            else:
                with open(path) as f:
                    return f.read()
        else:
            return file_or_path.read()

    def _parse_mmcif_data(self, content: str) -> Dict[str, Any]:
        """Parse mmCIF content into a flat dictionary.

        Key-value items are stored under their full tag
        (`_entry.id`), loops under their category (`_atom_site`) as
        `{"headers": [...], "data": [[...], ...]}`.
        """
        data: Dict[str, Any] = {}
        lines = content.split("\n")
        i = 0

        while i < len(lines):
            line = lines[i].strip()

            # Skip empty lines and comments
            if not line or line.startswith("#"):
                i += 1
                continue

            # Data block header; only the first block is read
            if line.startswith("data_"):
                if "_entry_id" in data:
                    break
                data["_entry_id"] = line[5:]
                i += 1
                continue

            if line == "loop_":
                i = self._parse_loop(lines, i + 1, data)
                continue

            # Single key-value pair
            if line.startswith("_"):
                parts = line.split(None, 1)
                if len(parts) == 2:
                    key, value = parts
                    tokens = self._split_line(value)
                    data[key] = tokens[0] if tokens else ""
                    i += 1
                else:
                    # Value on next line(s)
                    value, i = self._read_value(lines, i + 1)
                    data[parts[0]] = value
                continue

            i += 1

        return data

    def _parse_loop(self, lines: List[str], start: int, data: Dict[str, Any]) -> int:
        """Parse one loop starting after `loop_`; returns the next line index."""
        headers: List[str] = []
        i = start
        while i < len(lines):
            line = lines[i].strip()
            if line.startswith("_"):
                headers.append(line.split()[0])
                i += 1
            elif not line:
                i += 1
            else:
                break

        tokens: List[str] = []
        while i < len(lines):
            raw = lines[i]
            line = raw.strip()
            if line.startswith(("_", "loop_", "data_", "#")):
                break
            if raw.startswith(";"):
                value, i = self._read_text_field(lines, i)
                tokens.append(value)
                continue
            tokens.extend(self._split_line(line))
            i += 1

        if headers:
            n = len(headers)
            if len(tokens) % n:
                logger.warning(
                    "Loop %s has %d values for %d columns; trailing values dropped",
                    headers[0], len(tokens), n,
                )
            rows = [tokens[k:k + n] for k in range(0, len(tokens) - n + 1, n)]
            category = headers[0].split(".")[0]
            data[category] = {"headers": headers, "data": rows}
        return i

    def _read_value(self, lines: List[str], start: int) -> Tuple[str, int]:
        """Read a value placed on the line(s) after its tag."""
        if start >= len(lines):
            return "", start
        if lines[start].startswith(";"):
            return self._read_text_field(lines, start)
        tokens = self._split_line(lines[start].strip())
        return (tokens[0] if tokens else ""), start + 1

    def _read_text_field(self, lines: List[str], start: int) -> Tuple[str, int]:
        """Read a semicolon-delimited text field starting at `start`."""
        value_lines = [lines[start][1:]]
        i = start + 1
        while i < len(lines) and not lines[i].startswith(";"):
            value_lines.append(lines[i])
            i += 1
        return "\n".join(value_lines).strip(), i + 1

    def _split_line(self, line: str) -> List[str]:
        """Split a line into values, handling quoted strings.

        A quote only closes a value when followed by whitespace or the end
        of the line, so primes inside names (`"O5'"`) survive.
        """
        # Fast path: no quotes -> simple split
        if '"' not in line and "'" not in line:
            return [self._clean_value(v) for v in line.split()]

        values = []
        i = 0
        n = len(line)
        while i < n:
            char = line[i]
            if char.isspace():
                i += 1
                continue
            if char in "\"'":
                j = i + 1
                while j < n and not (line[j] == char and (j + 1 == n or line[j + 1].isspace())):
                    j += 1
                values.append(line[i + 1:j])
                i = j + 1
            else:
                j = i
                while j < n and not line[j].isspace():
                    j += 1
                values.append(self._clean_value(line[i:j]))
                i = j
        return values

    def _clean_value(self, value: str) -> str:
        """Map the mmCIF null markers '.' and '?' to an empty string."""
        value = value.strip()
        if value in (".", "?"):
            return ""
        return value

    def _category_rows(self, data: Dict[str, Any], category: str) -> List[Dict[str, str]]:
        """Return the rows of a category as dicts keyed by field name.

        Categories with a single row are usually written as key-value pairs
        instead of a loop; both layouts are handled.
        """
        loop = data.get(category)
        if loop:
            names = [h.split(".", 1)[-1] for h in loop["headers"]]
            return [dict(zip(names, record)) for record in loop["data"]]

        prefix = category + "."
        row = {key[len(prefix):]: value for key, value in data.items() if key.startswith(prefix)}
        return [row] if row else []

    def _extract_entry_id(self, data: Dict[str, Any]) -> str:
        """Extract the entry id from parsed data."""
        return (data.get("_entry.id") or data.get("_entry_id") or "UNKNOWN").upper()

    def _parse_atom_site(self, data: Dict[str, Any], builder: StructureModelBuilder) -> None:
        """Feed `_atom_site` records for the selected model into the builder."""
        rows = self._category_rows(data, "_atom_site")
        if not rows:
            return

        fields = rows[0].keys()
        for name in ("Cartn_x", "Cartn_y", "Cartn_z"):
            if name not in fields:
                raise MMCIFParseError(f"Missing required field: _atom_site.{name}")
        if "label_asym_id" not in fields and "auth_asym_id" not in fields:
            raise MMCIFParseError("Missing required field: _atom_site.label_asym_id")
        if "label_asym_id" not in fields:
            logger.warning("No label_asym_id in _atom_site, using auth_asym_id")

        model_num = self.model_num
        for row in rows:
            if "pdbx_PDB_model_num" in row and row["pdbx_PDB_model_num"]:
                num = int(row["pdbx_PDB_model_num"])
                if model_num is None:
                    model_num = num
                if num != model_num:
                    continue

            element = row.get("type_symbol", "")
            if self.remove_hydrogens and element.upper() in ("H", "D"):
                continue

            try:
                coords = (float(row["Cartn_x"]), float(row["Cartn_y"]), float(row["Cartn_z"]))
            except ValueError:
                logger.warning("Skipping atom %s with invalid coordinates", row.get("id"))
                continue

            label_asym_id = row.get("label_asym_id") or row.get("auth_asym_id", "")
            auth_asym_id = row.get("auth_asym_id") or label_asym_id

            builder.add_atom(
                coords=coords,
                type_symbol=element,
                label_asym_id=label_asym_id,
                auth_asym_id=auth_asym_id,
                entity_id=row.get("label_entity_id", ""),
                comp_id=row.get("label_comp_id") or row.get("auth_comp_id", ""),
                label_seq_id=_optional_int(row.get("label_seq_id")),
                auth_seq_id=_optional_int(row.get("auth_seq_id")),
                ins_code=row.get("pdbx_PDB_ins_code", ""),
                atom_id=_optional_int(row.get("id")) or 0,
                b_iso=float(row.get("B_iso_or_equiv") or 0.0),
            )

    def _parse_entities(self, data: Dict[str, Any]) -> Dict[str, EntityInfo]:
        """Parse `_entity` into EntityInfo records keyed by entity id."""
        entities: Dict[str, EntityInfo] = {}
        for row in self._category_rows(data, "_entity"):
            entity_id = row.get("id", "")
            if not entity_id:
                continue
            entities[entity_id] = EntityInfo(
                entity_id=entity_id,
                type=EntityType.from_mmcif(row.get("type")),
                description=row.get("pdbx_description") or None,
            )
        return entities

    def _parse_operators(self, data: Dict[str, Any]) -> Dict[str, Tuple[np.ndarray, np.ndarray]]:
        """Parse `_pdbx_struct_oper_list` into rotation/translation pairs."""
        operators = {}
        for row in self._category_rows(data, "_pdbx_struct_oper_list"):
            oper_id = row.get("id", "")
            try:
                rotation = np.array([
                    [float(row.get(f"matrix[{r}][{c}]") or 0) for c in range(1, 4)]
                    for r in range(1, 4)
                ], dtype=np.float64)
                translation = np.array([
                    float(row.get(f"vector[{r}]") or 0) for r in range(1, 4)
                ], dtype=np.float64)
            except ValueError:
                logger.warning("Skipping operator %s with invalid matrix", oper_id)
                continue
            operators[oper_id] = (rotation, translation)
        return operators

    def _parse_assemblies(self, data: Dict[str, Any]) -> List[AssemblyDescriptor]:
        """Parse assembly definitions into AssemblyDescriptors.

        Each `_pdbx_struct_assembly_gen` row becomes one operator group.
        Operators composed by a Cartesian product expression (`(1-60)(61)`)
        get the instance id `ASM-1-61`.
        """
        metadata: Dict[str, Dict[str, str]] = {}
        for row in self._category_rows(data, "_pdbx_struct_assembly"):
            if row.get("id"):
                metadata[row["id"]] = row

        operators = self._parse_operators(data)
        groups: Dict[str, List[OperatorGroup]] = {assembly_id: [] for assembly_id in metadata}

        for row in self._category_rows(data, "_pdbx_struct_assembly_gen"):
            assembly_id = row.get("assembly_id", "")
            if not assembly_id:
                continue
            asym_ids = tuple(c.strip() for c in row.get("asym_id_list", "").split(",") if c.strip())
            group_ops = []
            for oper_ids in parse_operator_expression(row.get("oper_expression", "")):
                rotation, translation = _compose(oper_ids, operators)
                group_ops.append(AssemblyOperator(
                    instance_id="ASM-" + "-".join(oper_ids),
                    oper_ids=oper_ids,
                    rotation=rotation,
                    translation=translation,
                ))
            groups.setdefault(assembly_id, []).append(OperatorGroup(
                operators=tuple(group_ops),
                asym_ids=asym_ids or None,
            ))

        assemblies = []
        for assembly_id, assembly_groups in groups.items():
            meta = metadata.get(assembly_id, {})
            assemblies.append(AssemblyDescriptor(
                assembly_id=assembly_id,
                operator_groups=tuple(assembly_groups),
                details=meta.get("details") or None,
                oligomeric_count=_optional_int(meta.get("oligomeric_count")),
            ))
        return assemblies


def parse_operator_expression(expression: str) -> List[Tuple[str, ...]]:
    """Parse PDB operator expression like '1,2,3' or '(1-5)' or '(1-3)(4-6)'.

    PDB uses expressions like:
    - "1" - single operator
    - "1,2,3" - list of operators
    - "(1-5)" - range of operators
    - "(1-3)(4-6)" - Cartesian product (combined operators)

    Returns:
        One tuple of operator ids per resulting operator; single operators
        give 1-tuples, Cartesian products give one id per factor
    """
    expression = expression.strip()
    if not expression:
        return []

    if ")(" in expression:
        parts = expression.split(")(")
        parts[0] = parts[0].lstrip("(")
        parts[-1] = parts[-1].rstrip(")")
        return list(product(*[_parse_single_expression(p) for p in parts]))

    return [(op_id,) for op_id in _parse_single_expression(expression)]


def _parse_single_expression(expression: str) -> List[str]:
    """Parse a single operator expression (no Cartesian product)."""
    expression = expression.strip("()")
    operator_ids = []

    for part in expression.split(","):
        part = part.strip()
        if not part:
            continue

        if "-" in part and not part.startswith("-"):
            # Range like "1-5"
            try:
                start, end = part.split("-", 1)
                for i in range(int(start), int(end) + 1):
                    operator_ids.append(str(i))
            except ValueError:
                operator_ids.append(part)
        else:
            operator_ids.append(part)

    return operator_ids


def _compose(
    oper_ids: Tuple[str, ...],
    operators: Dict[str, Tuple[np.ndarray, np.ndarray]],
) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
    """Compose operators left to right as x' = R1 (R2 x + t2) + t1."""
    if not all(op_id in operators for op_id in oper_ids):
        return None, None
    rotation = np.eye(3, dtype=np.float64)
    translation = np.zeros(3, dtype=np.float64)
    for op_id in oper_ids:
        op_rotation, op_translation = operators[op_id]
        translation = rotation @ op_translation + translation
        rotation = rotation @ op_rotation
    return rotation, translation


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_mmcif(path: Union[str, Path]) -> StructureModel:
    """Convenience function to parse an mmCIF file with default settings."""
    parser = MMCIFParser()
    return parser.parse(path)
