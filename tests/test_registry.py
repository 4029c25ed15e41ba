"""Tests for source and category resolution."""

import logging
import threading

import pytest

from newsingest.errors import ConflictError, RegistryError
from newsingest.ingestion import RawArticle, Registry
from newsingest.ingestion.registry import category_slug_from_name, source_key_from_name

from .fakes import InMemoryCategories, InMemorySources, raw_record


@pytest.fixture
def sources():
    return InMemorySources()


@pytest.fixture
def categories():
    return InMemoryCategories()


@pytest.fixture
def registry(sources, categories):
    return Registry(sources=sources, categories=categories)


class TestKeys:
    """Key derivation."""

    def test_source_key_from_name(self):
        assert source_key_from_name("  The Guardian UK ") == "the_guardian_uk"

    def test_source_key_maps_each_space(self):
        assert source_key_from_name("Daily  Mail") == "daily__mail"
        assert source_key_from_name("Daily\tMail") == "daily\tmail"

    def test_empty_source_name_rejected(self):
        with pytest.raises(RegistryError):
            source_key_from_name("   ")

    def test_category_slug_from_name(self):
        assert category_slug_from_name("Science & Tech") == "science-and-tech"


class TestResolveSource:
    """Source get-or-create."""

    def test_creates_source_with_fallback_key(self, registry, sources, caplog):
        record = RawArticle.model_validate(raw_record(source="The Guardian"))

        with caplog.at_level(logging.WARNING, logger="newsingest"):
            source = registry.resolve_source(None, record, "business")

        assert source.mediastack_id == "the_guardian"
        assert source.name == "The Guardian"
        assert source.description == "News source: The Guardian"
        assert source.category == "business"
        assert source.country == "us"
        assert source.language == "en"
        assert source.metadata == {"created_from_mediastack": True}
        assert "fallback ID 'the_guardian'" in caplog.text
        assert set(sources.rows) == {"the_guardian"}

    def test_uses_source_id_when_provided(self, registry):
        record = RawArticle.model_validate(raw_record(source="CNN", id="CNN-US"))

        source = registry.resolve_source(None, record)

        assert source.mediastack_id == "cnn-us"
        assert source.name == "CNN"

    def test_resolution_is_idempotent(self, registry, sources):
        record = RawArticle.model_validate(raw_record())

        first = registry.resolve_source(None, record)
        second = registry.resolve_source(None, record)

        assert first.id == second.id
        assert sources.create_calls == 1

    def test_missing_name_uses_sentinel(self, registry):
        record = RawArticle.model_validate(raw_record(source=None))

        source = registry.resolve_source(None, record)

        assert source.mediastack_id == "unknown"
        assert source.name == "Unknown Source"

    def test_lost_race_reads_winner(self, registry, sources):
        sources.created_concurrently.add("example_news")
        record = RawArticle.model_validate(raw_record())

        source = registry.resolve_source(None, record)

        assert source.mediastack_id == "example_news"
        assert len(sources.rows) == 1

    def test_conflict_without_row_propagates(self, categories):
        class VanishingSources(InMemorySources):
            def create(self, conn, source):
                raise ConflictError("sources_mediastack_id_key")

        registry = Registry(sources=VanishingSources(), categories=categories)

        with pytest.raises(ConflictError):
            registry.resolve_source(None, RawArticle.model_validate(raw_record()))

    def test_concurrent_resolution_creates_one_row(self, registry, sources):
        record = RawArticle.model_validate(raw_record())
        results = []

        def resolve():
            results.append(registry.resolve_source(None, record))

        threads = [threading.Thread(target=resolve) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(sources.rows) == 1
        assert {source.mediastack_id for source in results} == {"example_news"}


class TestResolveCategory:
    """Category get-or-create."""

    def test_creates_category(self, registry, categories):
        category = registry.resolve_category(None, "Business")

        assert category.slug == "business"
        assert category.name == "Business"
        assert category.description == "News category: Business"
        assert set(categories.rows) == {"business"}

    def test_same_slug_resolves_to_existing(self, registry, categories):
        first = registry.resolve_category(None, "business")
        second = registry.resolve_category(None, "Business")

        assert first.id == second.id
        assert len(categories.rows) == 1

    @pytest.mark.parametrize("name", [None, "", "日本"])
    def test_unusable_name_uses_sentinel(self, registry, name):
        category = registry.resolve_category(None, name)

        assert category.slug == "unknown"
        assert category.name == "Unknown"

    def test_lost_race_reads_winner(self, registry, categories):
        categories.created_concurrently.add("sports")

        category = registry.resolve_category(None, "sports")

        assert category.slug == "sports"
        assert len(categories.rows) == 1
