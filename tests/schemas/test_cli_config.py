"""Tests for CLIConfig."""

import pytest
from pydantic import ValidationError

from snowfree.schemas import CLIConfig


pytestmark = pytest.mark.unit


def test_empty_cli_has_no_overrides():
    assert CLIConfig().to_internal_overrides() == {}


def test_overrides():
    cli = CLIConfig(t0=2005, t1=2010, base_dir="/scratch", log_level="DEBUG")
    assert cli.to_internal_overrides() == {
        "base_dir": "/scratch",
        "period": {"t0": 2005, "t1": 2010},
        "logging": {"level": "DEBUG"},
    }


def test_inverted_period():
    with pytest.raises(ValidationError):
        CLIConfig(t0=2010, t1=2005)


def test_unknown_fields_rejected():
    with pytest.raises(ValidationError):
        CLIConfig(sensor="MOD10A1")
