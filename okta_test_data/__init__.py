"""Seed an Okta tenant with the resources needed for migration testing."""

__version__ = "0.1.0"
