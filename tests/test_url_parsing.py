"""
Tests for Search Console property resolution and domain helpers.
"""
import pytest

from sitepulse.utils.url_parsing import (
    domains_match,
    normalize_domain,
    resolve_search_console_site_url,
    site_name_from_domain,
)


class TestResolveSearchConsoleSiteUrl:

    @pytest.mark.parametrize("value,expected", [
        ("sc-domain:example.com", "sc-domain:example.com"),
        ("https://example.com/", "https://example.com/"),
        ("http://blog.example.com/", "http://blog.example.com/"),
        ("example.com", "sc-domain:example.com"),
        ("www.Example.com/path", "sc-domain:example.com"),
        ("  sc-domain:example.com  ", "sc-domain:example.com"),
    ])
    def test_accepted_forms(self, value, expected):
        assert resolve_search_console_site_url(value) == expected

    def test_console_link_with_resource_id(self):
        link = "https://search.google.com/search-console/performance/search-analytics?resource_id=sc-domain%3Aexample.com"
        assert resolve_search_console_site_url(link) == "sc-domain:example.com"

    def test_console_link_with_url_prefix_resource_id(self):
        link = "https://search.google.com/search-console?resource_id=https%3A%2F%2Fshop.com%2F"
        assert resolve_search_console_site_url(link) == "https://shop.com/"

    def test_console_link_with_property_in_path(self):
        link = "https://search.google.com/search-console/sc-domain:example.com/overview"
        assert resolve_search_console_site_url(link) == "sc-domain:example.com"

    def test_console_link_without_property(self):
        assert resolve_search_console_site_url("https://search.google.com/search-console") is None

    @pytest.mark.parametrize("value", [None, "", "   ", "localhost"])
    def test_unusable_values(self, value):
        assert resolve_search_console_site_url(value) is None


def test_normalize_domain():
    assert normalize_domain("sc-domain:Example.com") == "example.com"
    assert normalize_domain("https://www.example.com/blog") == "example.com"
    assert normalize_domain("example.com") == "example.com"
    assert normalize_domain("") == ""


def test_domains_match_ignores_www_and_scheme():
    assert domains_match("www.example.com", "example.com")
    assert domains_match("sc-domain:example.com", "https://example.com/")
    assert not domains_match("example.com", "example.org")


def test_site_name_from_domain():
    assert site_name_from_domain("example.com") == "Example"
    assert site_name_from_domain("localhost") == "localhost"
