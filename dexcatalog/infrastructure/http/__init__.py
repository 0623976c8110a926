"""HTTP adapter for the upstream catalog (httpx based)."""
