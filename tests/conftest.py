"""Pytest fixtures for concept store tests."""

from __future__ import annotations

import os
from collections.abc import Generator

import pytest

from conceptstore.brain import ConceptRegistry, PatternTracker, Segmenter
from conceptstore.config import Config
from conceptstore.container import Container


@pytest.fixture
def test_config() -> Config:
    """Create a small test configuration."""
    return Config(
        concept_dim=32,
        initial_capacity=256,
        growth_increment=64,
        max_segment_length=16,
        min_segment_frequency=5,
        pattern_capacity=100,
        dream_interval_seconds=0.01,
    )


@pytest.fixture
def container(test_config: Config) -> Generator[Container, None, None]:
    """Create a test container with isolated components."""
    container = Container.create(test_config)
    yield container
    container.close()


@pytest.fixture
def registry(container: Container) -> ConceptRegistry:
    """Seeded concept registry."""
    return container.registry


@pytest.fixture
def empty_registry() -> ConceptRegistry:
    """Unseeded concept registry with a tiny store."""
    return ConceptRegistry(
        concept_dim=8,
        initial_capacity=4,
        growth_increment=2,
        seed_basic_concepts=False,
    )


@pytest.fixture
def tracker() -> PatternTracker:
    """Pattern tracker with a small capacity."""
    return PatternTracker(capacity=10, min_frequency=2)


@pytest.fixture
def segmenter(container: Container) -> Segmenter:
    """Segmenter sharing the container's registry and tracker."""
    return container.segmenter


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Hide CONCEPTSTORE_* variables from tests."""
    saved = {k: v for k, v in os.environ.items() if k.startswith("CONCEPTSTORE_")}
    for key in saved:
        os.environ.pop(key)
    yield
    for key in [k for k in os.environ if k.startswith("CONCEPTSTORE_")]:
        os.environ.pop(key)
    os.environ.update(saved)
