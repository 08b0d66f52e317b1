"""Pytest configuration for all tests."""

import os

from hypothesis import settings

# Property tests touch pydantic models only; timing varies on shared CI runners
settings.register_profile("ci", deadline=None, max_examples=200)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))
