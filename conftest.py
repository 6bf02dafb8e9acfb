"""
Pytest configuration and shared fixtures for URL file signer tests.

This file provides:
- Parameter registries and files used across test modules
- Signers with a frozen clock and a fixed signature key
- A deterministic randomness source for path tags and random names
"""

import os
import django

# Configure Django settings before any Django imports
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'url_file_signer.settings')
django.setup()

import random

import pytest

from signing.files import File
from signing.parameters import ParameterDict
from signing.signed_urls import FileSigner, reset_file_signer

# 2019-11-17 14:13:20 UTC
FROZEN_NOW = 1574000000

BASE_URL = 'https://cdn.example.com/'
SIGNATURE_KEY = 'random_key'


# =============================================================================
# CLOCK & RANDOMNESS FIXTURES
# =============================================================================

@pytest.fixture
def now():
    """Current Unix time seen by every signer and file in a test."""
    return FROZEN_NOW


@pytest.fixture
def clock(now):
    """Clock callable frozen at `now`."""
    return lambda: now


@pytest.fixture
def rng():
    """Seeded randomness source."""
    return random.Random(1234)


# =============================================================================
# PARAMETER & FILE FIXTURES
# =============================================================================

@pytest.fixture
def params_dict():
    """Registry with version (v), size (s) and compression (c)."""
    return ParameterDict().add('version').add('size').add('compression')


@pytest.fixture
def image_file(params_dict, rng, clock):
    """/path/to/file/image.jpg with version=1 and size=1080x1080."""
    file = File(params_dict, rng=rng, clock=clock).set('/path/to/file/image.jpg')
    file.parameters.add('version', '1').add('size', '1080x1080')
    return file


# =============================================================================
# SIGNER FIXTURES
# =============================================================================

@pytest.fixture
def file_signer(clock):
    """FileSigner for BASE_URL with a frozen clock."""
    parameters = ParameterDict().add('version').add('size').add('compression')
    return FileSigner(BASE_URL, SIGNATURE_KEY, parameters=parameters, clock=clock)


@pytest.fixture(autouse=True)
def clean_file_signer():
    """Drop the settings based signer between tests."""
    reset_file_signer()
    yield
    reset_file_signer()
