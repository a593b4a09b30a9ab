"""Test fixtures for the terminal sandbox.

This package provides reusable test fixtures for all sandbox components:
- filesystems: Sandbox filesystem factories and pre-built trees
- missions: Mission definitions, missions and runners
- api: Engine and TestClient fixtures for the REST API
"""
