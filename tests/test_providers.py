"""Tests for model providers."""

import pytest


class CountingProvider:
    """Provider stub recording which entries were loaded."""

    def __init__(self, model_factory):
        self.model_factory = model_factory
        self.calls = []

    def get_model(self, entry_id):
        self.calls.append(entry_id)
        return self.model_factory(
            [("A", "A", "1", "ALA", 1, 1, "", [(0, 0, 0, "C")])], entry_id=entry_id
        )


class TestLocalModelProvider:
    """Tests for LocalModelProvider."""

    def test_find_plain_file(self, temp_mmcif_dir, sample_mmcif_content):
        """Test loading `<id>.cif` with a case-insensitive entry id."""
        from molsnap.data.providers import LocalModelProvider

        (temp_mmcif_dir / "1tst.cif").write_text(sample_mmcif_content)
        provider = LocalModelProvider(temp_mmcif_dir)

        model = provider.get_model("1TST")

        assert model.entry_id == "1TST"
        assert model.num_chains == 4

    def test_updated_file(self, temp_mmcif_dir, sample_mmcif_content):
        """Test falling back to `<id>_updated.cif`."""
        from molsnap.data.providers import LocalModelProvider

        path = temp_mmcif_dir / "1tst_updated.cif"
        path.write_text(sample_mmcif_content)

        assert LocalModelProvider(temp_mmcif_dir).find_file("1tst") == path

    def test_missing_entry(self, temp_mmcif_dir):
        """Test that a missing file raises ModelNotFound listing the candidates."""
        from molsnap.data.providers import LocalModelProvider
        from molsnap.errors import ModelNotFound

        with pytest.raises(ModelNotFound) as exc_info:
            LocalModelProvider(temp_mmcif_dir).get_model("9XYZ")

        assert len(exc_info.value.details["tried"]) == 4
        assert exc_info.value.details["tried"][0].endswith("9xyz.cif")


class TestCachedModelProvider:
    """Tests for the single-slot cache."""

    def test_same_entry_is_cached(self, model_factory):
        """Test that repeated requests for one entry hit the cache."""
        from molsnap.data.providers import CachedModelProvider

        inner = CountingProvider(model_factory)
        provider = CachedModelProvider(inner)

        first = provider.get_model("1ABC")
        second = provider.get_model("1ABC")

        assert first is second
        assert inner.calls == ["1ABC"]
        assert provider.cached_entry_id == "1ABC"

    def test_other_entry_evicts(self, model_factory):
        """Test that a different entry replaces the cached model."""
        from molsnap.data.providers import CachedModelProvider

        inner = CountingProvider(model_factory)
        provider = CachedModelProvider(inner)

        provider.get_model("1ABC")
        provider.get_model("2XYZ")
        provider.get_model("1ABC")

        assert inner.calls == ["1ABC", "2XYZ", "1ABC"]
        assert provider.cached_entry_id == "1ABC"

    def test_clear(self, model_factory):
        """Test emptying the cache."""
        from molsnap.data.providers import CachedModelProvider

        inner = CountingProvider(model_factory)
        provider = CachedModelProvider(inner)
        provider.get_model("1ABC")

        provider.clear()
        provider.get_model("1ABC")

        assert provider.cached_entry_id == "1ABC"
        assert inner.calls == ["1ABC", "1ABC"]

    def test_wraps_local_provider(self, temp_mmcif_dir, sample_mmcif_content):
        """Test caching models read from disk."""
        from molsnap.data.providers import CachedModelProvider, LocalModelProvider

        (temp_mmcif_dir / "1tst.cif").write_text(sample_mmcif_content)
        provider = CachedModelProvider(LocalModelProvider(temp_mmcif_dir))

        assert provider.get_model("1tst") is provider.get_model("1tst")
