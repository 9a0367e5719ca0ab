"""
Test the tenant_tagging API
"""
from __future__ import annotations

import pytest
from django.test import TestCase, override_settings

from tenant_tagging.core.tagging import api
from tenant_tagging.core.tagging.exceptions import InvalidNameError
from tenant_tagging.core.tagging.models import Tag, Tagging


class TestApiLookups(TestCase):
    """
    Test the lookup functions of the API
    """

    def setUp(self):
        super().setUp()
        self.ruby = api.find_or_create_tag("Ruby", "acme")
        self.rails = api.find_or_create_tag("Ruby on Rails", "acme")
        self.python = api.find_or_create_tag("Python", "acme")

    def test_find_tag(self) -> None:
        assert api.find_tag("RUBY", "acme") == self.ruby
        assert api.find_tag("Ruby", "initech") is None
        assert api.find_tag("Perl", "acme") is None

    def test_find_tags(self) -> None:
        tags = api.find_tags(["python", "ruby", "perl"], "acme")
        assert sorted(tag.name for tag in tags) == ["Python", "Ruby"]
        assert api.find_tags([], "acme") == []

    def test_search_tags(self) -> None:
        assert api.search_tags(["rub"], "acme") == [self.ruby, self.rails]
        assert api.search_tags(["RAILS", "thon"], "acme") == [self.rails, self.python]
        assert not api.search_tags(["rub"], "initech")

    def test_does_not_exist_is_exported(self) -> None:
        with pytest.raises(api.TagDoesNotExist):
            Tag.objects.get(tenant_id="acme", name="Perl")

    def test_get_tag_registry_reads_settings(self) -> None:
        registry = api.get_tag_registry()
        with override_settings(TENANT_TAGGING={"CASE_SENSITIVITY": "strict"}):
            assert registry.find_by_name("ruby", "acme") is None
        assert registry.find_by_name("ruby", "acme") == self.ruby


class TestApiFindOrCreate(TestCase):
    """
    Test the find-or-create functions of the API
    """

    def test_find_or_create_tag(self) -> None:
        tag = api.find_or_create_tag("Django", "acme")
        assert tag.pk
        assert api.find_or_create_tag("django", "acme") == tag
        assert Tag.objects.count() == 1

    def test_find_or_create_tags(self) -> None:
        existing = api.find_or_create_tag("Django", "acme")
        tags = api.find_or_create_tags(["Flask", "DJANGO", "FastAPI", "flask"], "acme")
        assert [tag.name for tag in tags] == ["Flask", "Django", "FastAPI", "Flask"]
        assert tags[1] == existing
        assert tags[0].pk == tags[3].pk
        assert Tag.objects.for_tenant("acme").count() == 3

    def test_find_or_create_tags_accepts_generators(self) -> None:
        tags = api.find_or_create_tags((name for name in ["a", "b"]), "acme")
        assert [tag.name for tag in tags] == ["a", "b"]

    def test_invalid_name(self) -> None:
        with pytest.raises(InvalidNameError):
            api.find_or_create_tag("  ", "acme")
        with pytest.raises(InvalidNameError):
            api.find_or_create_tags(["ok", ""], "acme")
        assert not Tag.objects.exists()


class TestApiUsage(TestCase):
    """
    Test the usage based queries of the API
    """

    def setUp(self):
        super().setUp()
        self.popular = Tag.objects.create(tenant_id="acme", name="popular", usage_count=50)
        self.niche = Tag.objects.create(tenant_id="acme", name="niche", usage_count=1)
        self.middling = Tag.objects.create(tenant_id="acme", name="middling", usage_count=10)

    def test_get_most_used_tags(self) -> None:
        assert list(api.get_most_used_tags("acme")) == [self.popular, self.middling, self.niche]
        assert list(api.get_most_used_tags("acme", limit=1)) == [self.popular]
        assert not list(api.get_most_used_tags("initech"))

    def test_get_least_used_tags(self) -> None:
        assert list(api.get_least_used_tags("acme", limit=2)) == [self.niche, self.middling]

    def test_get_tags_for_context(self) -> None:
        Tagging.objects.create(tag=self.niche, tenant_id="acme", object_id="doc:1", context="topics")
        Tagging.objects.create(tag=self.niche, tenant_id="acme", object_id="doc:2", context="topics")
        Tagging.objects.create(tag=self.popular, tenant_id="acme", object_id="doc:1")
        assert list(api.get_tags_for_context("topics", "acme")) == [self.niche]
        assert list(api.get_tags_for_context("tags", "acme")) == [self.popular]
