# tests/core/config/test_settings.py
"""
Testes de EngineSettings e da seção `parameters`.
"""

import pytest

from stackgraph.core.config import EngineSettings, InvalidSettingsError, deployment_parameters


def test_defaults_when_section_missing():
    settings = EngineSettings.from_config({})
    assert settings.parallelism == 4
    assert settings.fail_fast is False


def test_reads_engine_section(dummy_config):
    dummy_config["engine"] = {"parallelism": 1, "fail_fast": True}
    assert EngineSettings.from_config(dummy_config) == EngineSettings(parallelism=1, fail_fast=True)


@pytest.mark.parametrize("value", [0, -1, "4", 2.5, True])
def test_invalid_parallelism_rejected(value):
    with pytest.raises(InvalidSettingsError):
        EngineSettings.from_config({"engine": {"parallelism": value}})


def test_fail_fast_must_be_bool():
    with pytest.raises(InvalidSettingsError):
        EngineSettings.from_config({"engine": {"fail_fast": "yes"}})


def test_engine_section_must_be_mapping():
    with pytest.raises(InvalidSettingsError):
        EngineSettings.from_config({"engine": [1, 2]})


def test_parameters_section():
    assert deployment_parameters({"parameters": {"region": "eu-west-1"}}) == {"region": "eu-west-1"}
    assert deployment_parameters({}) == {}
    with pytest.raises(InvalidSettingsError):
        deployment_parameters({"parameters": "eu-west-1"})
