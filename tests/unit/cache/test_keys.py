"""Tests for cache key generation and tenant tags."""

import pytest

from basechat_cache.cache.errors import InvalidCacheKeyError
from basechat_cache.cache.keys import CacheKeys
from basechat_cache.cache.tags import build_tags, build_tenant_tag, build_tenant_user_tag
from basechat_cache.config import Settings


class TestCacheKeys:
    """Test cache key generation."""

    def test_entry_key(self) -> None:
        """Entry key is the prefix plus the caller key."""
        assert CacheKeys().entry("page:/o/acme") == "basechat:page:/o/acme"

    def test_tag_index_key(self) -> None:
        """Tag index key lives under the tags namespace."""
        assert CacheKeys().tag_index("tenant:acme") == "basechat:tags:tenant:acme"

    def test_from_settings(self) -> None:
        """Prefixes come from settings."""
        keys = CacheKeys.from_settings(
            Settings(cache_key_prefix="staging:", tag_index_prefix="staging:tags:")
        )
        assert keys.entry("k") == "staging:k"
        assert keys.tag_index("t") == "staging:tags:t"

    def test_strip_entry(self) -> None:
        """Namespaced entry keys are mapped back to caller keys."""
        keys = CacheKeys()
        assert keys.strip_entry("basechat:page:/o/acme") == "page:/o/acme"

    def test_strip_entry_rejects_foreign_keys(self) -> None:
        """Keys outside the entry namespace return None."""
        keys = CacheKeys()
        assert keys.strip_entry("other:page") is None
        assert keys.strip_entry("basechat:tags:tenant:acme") is None

    def test_is_tag_index(self) -> None:
        keys = CacheKeys()
        assert keys.is_tag_index("basechat:tags:tenant:acme") is True
        assert keys.is_tag_index("basechat:page") is False

    def test_entry_rejects_tag_namespace(self) -> None:
        """A caller key may not address a tag index."""
        with pytest.raises(InvalidCacheKeyError):
            CacheKeys().entry("tags:tenant:acme")

    def test_separate_namespaces_allow_any_key(self) -> None:
        keys = CacheKeys(prefix="entries:", tag_prefix="tags:")
        assert keys.entry("tags:tenant:acme") == "entries:tags:tenant:acme"


class TestTenantTags:
    """Test tenant tag builders."""

    def test_tenant_tag(self) -> None:
        assert build_tenant_tag("acme") == "tenant:acme"

    def test_tenant_user_tag(self) -> None:
        assert build_tenant_user_tag("42", "acme") == "tenant:acme:user:42"

    def test_build_tags(self) -> None:
        """User tag comes first, then the tenant tag."""
        assert build_tags("42", "acme") == ["tenant:acme:user:42", "tenant:acme"]
