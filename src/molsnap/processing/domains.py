"""Fold flat SIFTS-style mapping records into hierarchical domain records.

A mapping record (one item of a PDBe `mappings` family list) looks like::

    {
        "domain": "1abcA01",          # optional
        "scop_id": "d1abca1",         # optional
        "entity_id": 1,
        "chain_id": "A",              # author chain id
        "struct_asym_id": "A",        # label chain id
        "start": {"residue_number": 10},
        "end": {"residue_number": 120},
    }

Records sharing a domain id become chunks of one DomainRecord, numbered
by segment in input order.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from molsnap.data.records import DomainChunkRecord, DomainRecord
from molsnap.utils import get_or_insert


logger = logging.getLogger(__name__)

DomainsBySourceFamily = Dict[str, Dict[str, List[DomainRecord]]]
DomainsByEntity = Dict[str, Dict[str, Dict[str, List[DomainRecord]]]]


class DomainIdCounter:
    """Synthesizes domain ids for records that carry none.

    The first domain of an author chain is `family_chain`, later ones are
    `family_chain_2`, `family_chain_3`, ... Counters are independent per
    author chain.
    """

    def __init__(self, family: str):
        self.family = family
        self.counts: Dict[str, int] = {}

    def next_id(self, chain_id: str) -> str:
        num = self.counts.get(chain_id, 0) + 1
        self.counts[chain_id] = num
        if num == 1:
            return f"{self.family}_{chain_id}"
        return f"{self.family}_{chain_id}_{num}"


def _residue_number(position: Optional[Mapping[str, Any]]) -> Optional[int]:
    if position is None:
        return None
    return position.get("residue_number")


def extract_domain_mappings(
    mappings: Sequence[Mapping[str, Any]],
    source: str,
    family: str,
    family_name: Optional[str],
) -> List[DomainRecord]:
    """Convert the flat mapping records of one family into DomainRecords.

    Args:
        mappings: Mapping records in API order
        source: Source database name (e.g. "CATH")
        family: Family accession
        family_name: Family display name

    Returns:
        Domain records sorted by domain id

    Raises:
        KeyError: If a record lacks `entity_id`, `chain_id` or `struct_asym_id`.
    """
    counter = DomainIdCounter(family)
    chunks: Dict[str, List[DomainChunkRecord]] = {}

    for mapping in mappings:
        domain_id = mapping.get("domain")
        if domain_id is None:
            domain_id = mapping.get("scop_id")
        if domain_id is None:
            domain_id = counter.next_id(mapping["chain_id"])

        start = _residue_number(mapping.get("start"))
        end = _residue_number(mapping.get("end"))
        if start is not None and end is not None and start > end:
            logger.debug("Swapping inverted range %s-%s in domain %s", start, end, domain_id)
            start, end = end, start

        domain_chunks = get_or_insert(chunks, domain_id, list)
        domain_chunks.append(DomainChunkRecord(
            entity_id=str(mapping["entity_id"]),
            chain_id=mapping["struct_asym_id"],
            auth_chain_id=mapping["chain_id"],
            start_residue=start,
            end_residue=end,
            segment=len(domain_chunks) + 1,
        ))

    domains = [
        DomainRecord(
            id=domain_id,
            source=source,
            family=family,
            family_name=family_name,
            chunks=tuple(domain_chunks),
        )
        for domain_id, domain_chunks in chunks.items()
    ]
    return sorted(domains, key=lambda d: d.id)


def reindex_by_entity(domains: DomainsBySourceFamily) -> DomainsByEntity:
    """Regroup source -> family -> domains into source -> family -> entity -> domains.

    A domain is placed under the entity of its first chunk only, even when
    later chunks belong to other entities.
    """
    result: DomainsByEntity = {}
    for source, source_domains in domains.items():
        for family, family_domains in source_domains.items():
            for domain in family_domains:
                entity_id = domain.chunks[0].entity_id
                by_family = get_or_insert(result, source, dict)
                by_entity = get_or_insert(by_family, family, dict)
                get_or_insert(by_entity, entity_id, list).append(domain)
    return result


def domains_from_api_payload(
    entry_id: str,
    protein_payload: Mapping[str, Any],
    nucleic_payload: Optional[Mapping[str, Any]] = None,
) -> DomainsBySourceFamily:
    """Domain records of one entry from decoded PDBe mapping payloads.

    Args:
        entry_id: Entry id as used as top-level key of the payloads
        protein_payload: Decoded `mappings/{entry}` response
        nucleic_payload: Decoded `nucleic_mappings/{entry}` response;
            its sources replace protein sources of the same name

    Returns:
        source -> family -> domain records; families are visited in sorted order
    """
    entry_data: Dict[str, Any] = dict(protein_payload.get(entry_id) or {})
    if nucleic_payload is not None:
        entry_data.update(nucleic_payload.get(entry_id) or {})

    result: DomainsBySourceFamily = {}
    for source, source_data in entry_data.items():
        result[source] = {}
        source_data = source_data or {}
        for family in sorted(source_data):
            family_data = source_data[family]
            result[source][family] = extract_domain_mappings(
                family_data.get("mappings") or [],
                source,
                family,
                family_data.get("identifier"),
            )
        logger.debug("%s: %d %s families", entry_id, len(result[source]), source)
    return result
