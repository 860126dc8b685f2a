"""
Services package for the Okta test data seeder.

resolvers.py holds the per-resource find-or-create calls; seeder.py
sequences them into one run.
"""

from okta_test_data.services.seeder import SeedResult, seed_test_data

__all__ = ["SeedResult", "seed_test_data"]
