"""Invalidation tags for tenant-scoped pages.

Pages rendered for a tenant are tagged with both the tenant tag and the
tenant+user tag, so a tenant settings change can drop every page of the
tenant while a profile change only drops that user's pages.
"""

from __future__ import annotations


def build_tenant_tag(slug: str) -> str:
    return f"tenant:{slug}"


def build_tenant_user_tag(user_id: str, slug: str) -> str:
    return f"tenant:{slug}:user:{user_id}"


def build_tags(user_id: str, slug: str) -> list[str]:
    """Tags for a page rendered for ``user_id`` inside tenant ``slug``."""
    return [build_tenant_user_tag(user_id, slug), build_tenant_tag(slug)]
