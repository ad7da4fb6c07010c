"""Tests for slug helpers."""

from __future__ import annotations

from erdstudio.services._shared.slugs import SLUG_MAX_LENGTH, slugify, unique_slug


class TestSlugify:
    def test_strips_accents_and_punctuation(self):
        assert slugify("Loïc Knuchel") == "loic-knuchel"
        assert slugify("  ACME -- Data/Team  ") == "acme-data-team"

    def test_falls_back_to_default(self):
        assert slugify(None) == "user"
        assert slugify("***") == "user"
        assert slugify("日本", default="project") == "project"

    def test_truncates_without_trailing_dash(self):
        slug = slugify("a" * (SLUG_MAX_LENGTH - 1) + " b")
        assert len(slug) <= SLUG_MAX_LENGTH
        assert not slug.endswith("-")


class TestUniqueSlug:
    def test_returns_base_when_free(self):
        assert unique_slug("Acme", lambda s: False) == "acme"

    def test_appends_first_free_suffix(self):
        taken = {"acme", "acme-2"}
        assert unique_slug("Acme", taken.__contains__) == "acme-3"
