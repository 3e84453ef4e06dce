"""Tests for the residue surroundings query."""

import numpy as np
import pytest


class TestSurroundings:
    """Tests for surroundings()."""

    def test_radius_includes_neighbor(self, two_chain_model):
        """Test that a residue 3.0 A away is found with radius 5.0."""
        from molsnap.data.records import ResidueLocator
        from molsnap.processing.surroundings import surroundings

        residues = surroundings(two_chain_model, "A", 5.0)

        assert residues == [ResidueLocator("B", 1, 101, "")]

    def test_small_radius_excludes_neighbor(self, two_chain_model):
        """Test that a residue 3.0 A away is not found with radius 2.0."""
        from molsnap.processing.surroundings import surroundings

        assert surroundings(two_chain_model, "A", 2.0) == []
        assert surroundings(two_chain_model, "B", 2.0) == []

    def test_cutoff_is_inclusive(self, two_chain_model):
        """Test that atoms exactly at the radius are accepted."""
        from molsnap.processing.surroundings import surroundings

        residues = surroundings(two_chain_model, "B", 5.0)

        # A1 is 3.0 A away, A2 exactly 5.0 A, A3 8.5 A
        assert [(r.label_asym_id, r.label_seq_id) for r in residues] == [("A", 1), ("A", 2)]

    def test_excludes_target_chain(self, two_chain_model):
        """Test that residues of the target chain are never reported."""
        from molsnap.processing.surroundings import surroundings

        for chain_id in ("A", "B"):
            for radius in (1.0, 5.0, 50.0):
                residues = surroundings(two_chain_model, chain_id, radius)
                assert all(r.label_asym_id != chain_id for r in residues)

    def test_residues_reported_once(self, two_chain_model):
        """Test that a residue with several accepted atoms is reported once."""
        from molsnap.processing.surroundings import surroundings

        residues = surroundings(two_chain_model, "B", 50.0)

        assert [r.label_seq_id for r in residues] == [1, 2, 3]

    def test_unknown_chain(self, two_chain_model):
        """Test that an unknown chain id raises ChainNotFound."""
        from molsnap.errors import ChainNotFound
        from molsnap.processing.surroundings import surroundings

        with pytest.raises(ChainNotFound) as exc_info:
            surroundings(two_chain_model, "Z", 5.0)

        assert exc_info.value.chain_id == "Z"
        assert exc_info.value.to_result()["error"]["code"] == "chain_not_found"

    def test_non_positive_radius_runs(self, two_chain_model):
        """Test that radius <= 0 executes without error."""
        from molsnap.processing.surroundings import surroundings

        assert surroundings(two_chain_model, "A", 0.0) == []
        assert surroundings(two_chain_model, "A", -1.0) == []

    def test_block_size_does_not_change_result(self, two_chain_model):
        """Test that distance blocks give the same residues as a single block."""
        from molsnap.processing.surroundings import surroundings

        expected = surroundings(two_chain_model, "B", 50.0)

        for block_size in (1, 2, 3, 1000):
            assert surroundings(two_chain_model, "B", 50.0, block_size=block_size) == expected

    def test_locators_on_parsed_model(self, sample_model):
        """Test locators carry label/author numbering and insertion codes."""
        from molsnap.data.records import ResidueLocator
        from molsnap.processing.surroundings import surroundings

        residues = surroundings(sample_model, "C", 5.0)

        assert residues == [
            ResidueLocator("A", 1, 1, ""),
            ResidueLocator("A", 2, 2, ""),
            ResidueLocator("B", 1, 9, ""),
        ]
        wide = surroundings(sample_model, "C", 6.0)
        assert wide[-1] == ResidueLocator("B", 2, 10, "A")

    def test_interleaved_model_rejected(self, model_factory):
        """Test that a model with a split residue is rejected before querying."""
        from molsnap.errors import ModelInvariantError
        from molsnap.processing.surroundings import surroundings

        model = model_factory([
            ("A", "A", "1", "ALA", 1, 1, "", [(0, 0, 0, "C")]),
            ("B", "B", "1", "GLY", 1, 1, "", [(1, 0, 0, "C")]),
            ("B", "B", "1", "SER", 2, 2, "", [(2, 0, 0, "C")]),
            ("B", "B", "1", "GLY", 1, 1, "", [(3, 0, 0, "C")]),
        ])

        with pytest.raises(ModelInvariantError):
            surroundings(model, "A", 5.0)

    def test_split_chain_rejected(self, model_factory):
        """Test that a target chain stored in two separate blocks is rejected."""
        from molsnap.errors import ModelInvariantError
        from molsnap.processing.surroundings import surroundings

        model = model_factory([
            ("A", "A", "1", "ALA", 1, 1, "", [(0, 0, 0, "C")]),
            ("B", "B", "1", "ALA", 1, 1, "", [(10, 0, 0, "C")]),
            ("A", "A", "1", "GLY", 2, 2, "", [(1.5, 0, 0, "C")]),
        ])

        with pytest.raises(ModelInvariantError):
            surroundings(model, "A", 5.0)

    def test_matches_brute_force(self, model_factory):
        """Test against an all-pairs reference on random coordinates."""
        from molsnap.processing.surroundings import surroundings

        rng = np.random.default_rng(7)
        residues = []
        for chain_index, chain_id in enumerate("ABC"):
            for seq in range(1, 21):
                atoms = [tuple(rng.uniform(0, 20, 3)) + ("C",) for _ in range(3)]
                residues.append((chain_id, chain_id, "1", "ALA", seq, seq, "", atoms))
        model = model_factory(residues)

        coords = model.coords
        start, end = model.chain_atom_range(1)
        target = coords[start:end]
        expected = []
        for atom in range(model.num_atoms):
            if start <= atom < end:
                continue
            if np.min(np.sum((target - coords[atom]) ** 2, axis=1)) <= 16.0:
                residue = int(model.residue_index[atom])
                if not expected or expected[-1] != residue:
                    expected.append(residue)

        result = surroundings(model, "B", 4.0, block_size=7)

        assert [(r.label_asym_id, r.label_seq_id) for r in result] == [
            (model.label_asym_id[model.chain_index[model.residue_offsets[r]]], model.label_seq_id[r])
            for r in expected
        ]
