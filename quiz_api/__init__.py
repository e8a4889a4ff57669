"""Test-attempt engine: sessions, scoring, access control and caching."""
