"""Tests for the unified config schema and the build_config() factory."""

import logging

import pytest
from pydantic import ValidationError

from blogsync.config_schema import (
    DEFAULT_API_URL,
    DEFAULT_CONTENT,
    DEFAULT_TEMPLATE,
    LoggingConfig,
    SiteConfig,
    UnifiedConfig,
    WriteAsConfig,
    build_config,
)
from blogsync.sync.models import PublishOptions

# ---------------------------------------------------------------------------
# UnifiedConfig tests
# ---------------------------------------------------------------------------


class TestUnifiedConfig:
    """Tests for the top-level UnifiedConfig model."""

    def test_zero_config_defaults(self):
        config = UnifiedConfig()
        assert config.site.content == DEFAULT_CONTENT
        assert config.site.tmpl == DEFAULT_TEMPLATE
        assert config.site.collection == ""
        assert config.writeas.url == DEFAULT_API_URL
        assert config.writeas.token is None
        assert config.logging.level == "INFO"

    def test_frozen_model_prevents_mutation(self):
        config = UnifiedConfig()
        with pytest.raises(ValidationError):
            config.site = SiteConfig(title="changed")


class TestSectionModels:
    def test_site_params_passthrough(self):
        site = SiteConfig(params={"base": "https://example.com", "n": 3})
        assert site.params["n"] == 3

    def test_writeas_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            WriteAsConfig(timeout=0)

    def test_logging_custom_values(self):
        config = LoggingConfig(level="DEBUG", file="/tmp/blogsync.log")
        assert config.file == "/tmp/blogsync.log"


# ---------------------------------------------------------------------------
# build_config tests
# ---------------------------------------------------------------------------


class TestBuildConfig:
    """Tests for build_config() factory function."""

    def test_empty_dict_returns_defaults(self):
        assert build_config({}) == UnifiedConfig()

    def test_partial_sections_fill_defaults(self):
        config = build_config({"site": {"collection": "blog"}})
        assert config.site.collection == "blog"
        assert config.site.content == DEFAULT_CONTENT
        assert config.writeas.url == DEFAULT_API_URL

    def test_full_raw_dict(self):
        config = build_config(
            {
                "site": {
                    "title": "My Blog",
                    "collection": "blog",
                    "content": "posts/",
                    "tmpl": "@body.tmpl",
                    "language": "en",
                },
                "writeas": {"url": "https://blog.example.com/api", "timeout": 5},
                "logging": {"level": "WARNING"},
            }
        )
        assert config.site.title == "My Blog"
        assert config.site.tmpl == "@body.tmpl"
        assert config.writeas.timeout == 5
        assert config.logging.level == "WARNING"

    def test_unknown_sections_ignored_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="blogsync.config_schema"):
            config = build_config({"site": {}, "future": {"key": "value"}})
        assert not hasattr(config, "future")
        assert "Ignoring unknown config section 'future'" in caplog.text

    def test_invalid_section_raises(self):
        with pytest.raises(ValidationError):
            build_config({"writeas": {"timeout": "soon"}})


class TestPublishOptionsFromSite:
    def test_seeded_from_site(self):
        site = SiteConfig(collection="blog", content="posts/", tmpl="x")
        options = PublishOptions.from_site(site)
        assert options.collection == "blog"
        assert options.content == "posts/"
        assert options.tmpl == "x"

    def test_overrides_win(self):
        site = SiteConfig(collection="blog")
        options = PublishOptions.from_site(site, collection="notes", delete=True)
        assert options.collection == "notes"
        assert options.delete is True

    def test_none_overrides_ignored(self):
        site = SiteConfig(collection="blog")
        options = PublishOptions.from_site(site, collection=None, content=None)
        assert options.collection == "blog"
        assert options.content == DEFAULT_CONTENT
