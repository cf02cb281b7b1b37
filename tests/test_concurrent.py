"""Tests that the server handles many simultaneous requests correctly.

The app is async (FastAPI) and the shared store synchronizes itself, so
concurrent requests never wait on each other. These tests assert that many
simultaneous requests succeed and return correct results.
"""

import asyncio
import pytest


def id_from_link(body: str) -> str:
    return body.rstrip("\n").rsplit("/", 1)[-1]


@pytest.mark.asyncio
class TestConcurrentConnections:
    """Prove the server handles many simultaneous requests."""

    async def test_concurrent_health_requests(self, client):
        """Many concurrent GET /health requests all succeed."""
        concurrency = 50
        tasks = [client.get("/health") for _ in range(concurrency)]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        for i, r in enumerate(responses):
            if isinstance(r, Exception):
                pytest.fail(f"Request {i} raised: {r}")
            assert r.status_code == 200, f"Request {i}: status {r.status_code}"

    async def test_concurrent_key_writes(self, client):
        """Many concurrent POST /key with different payloads; each reads back its own payload."""
        concurrency = 30
        payloads = [f"payload {i}" for i in range(concurrency)]
        tasks = [client.post("/key", content=p.encode()) for p in payloads]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        identifiers = []
        for i, r in enumerate(responses):
            if isinstance(r, Exception):
                pytest.fail(f"Request {i} raised: {r}")
            assert r.status_code == 200, f"Request {i}: status {r.status_code} body={r.text}"
            identifiers.append(id_from_link(r.text))

        reads = await asyncio.gather(*(client.get(f"/key/{identifier}") for identifier in identifiers))
        for i, r in enumerate(reads):
            assert r.status_code == 200
            assert r.text == payloads[i]

    async def test_concurrent_redirect_requests(self, client):
        """Create one redirect, then many concurrent GET /{id} requests all redirect."""
        create_resp = await client.post("/url", content=b"https://example.com/redirect-target")
        assert create_resp.status_code == 200
        identifier = id_from_link(create_resp.text)

        tasks = [client.get(f"/{identifier}") for _ in range(20)]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        for i, r in enumerate(responses):
            if isinstance(r, Exception):
                pytest.fail(f"Request {i} raised: {r}")
            assert r.status_code == 301, f"Request {i}: status {r.status_code}"
            assert r.headers.get("location") == "https://example.com/redirect-target"

    async def test_concurrent_writes_same_id(self, client):
        """Racing writes to one id: exactly one of the written values survives."""
        payloads = [f"writer {i}" for i in range(20)]
        tasks = [client.post("/key/contended", content=p.encode()) for p in payloads]
        responses = await asyncio.gather(*tasks)

        assert all(r.status_code == 200 for r in responses)
        final = await client.get("/key/contended")
        assert final.text in payloads

    async def test_concurrent_mixed_read_write_delete(self, client):
        """Writes, reads and deletes on unrelated ids interleave without errors."""
        await client.post("/key/stable", content=b"stable")

        tasks = (
            [client.post(f"/key/w{i}", content=b"v") for i in range(15)]
            + [client.get("/key/stable") for _ in range(15)]
            + [client.delete(f"/key/d{i}") for i in range(15)]
        )
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        for i, r in enumerate(responses):
            if isinstance(r, Exception):
                pytest.fail(f"Request {i} raised: {r}")
            assert r.status_code == 200, f"Request {i}: status {r.status_code}"
