"""Shared fixtures for integration tests."""

import asyncio

import aiohttp
import pytest

from oncosaferx.config import get_settings
from oncosaferx.data_sources.backend import BackendClient
from oncosaferx.data_sources.supabase import SupabaseClient


@pytest.fixture
async def supabase_client():
    """Create and tear down a SupabaseClient for the configured project.

    Prerequisites:
      - SUPABASE_URL and SUPABASE_ANON_KEY set (env or .env)
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_anon_key:
        pytest.skip("SUPABASE_URL / SUPABASE_ANON_KEY not set, skipping Supabase integration test")
    c = SupabaseClient()
    yield c
    await c.close()


@pytest.fixture
def test_credentials() -> tuple[str, str]:
    """Email and password of a confirmed account in the configured project."""
    settings = get_settings()
    if not settings.test_user_email or not settings.test_user_password:
        pytest.skip("TEST_USER_EMAIL / TEST_USER_PASSWORD not set")
    return settings.test_user_email, settings.test_user_password


@pytest.fixture
async def backend_client():
    """Create and tear down a BackendClient pointed at BACKEND_API_URL.

    Skips when nothing answers at that URL.
    """
    c = BackendClient()
    try:
        async with aiohttp.ClientSession() as probe:
            async with probe.get(c.base_url, timeout=aiohttp.ClientTimeout(total=3)):
                pass
    except (aiohttp.ClientError, asyncio.TimeoutError):
        await c.close()
        pytest.skip(f"No backend reachable at {c.base_url}")
    yield c
    await c.close()
