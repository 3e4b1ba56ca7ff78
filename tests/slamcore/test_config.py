"""Unit tests for slamcore.config (EKFSlamConfig, presets, JSON loading)."""

import json

import pytest

from slamcore.config import PRESETS, EKFSlamConfig
from slamcore.models import MeasurementNoise, ProcessNoise


class TestDefaults:
    def test_default_values(self):
        config = EKFSlamConfig()
        assert config.initial_landmark_uncertainty == 1000.0
        assert config.singular_epsilon == 1e-12
        assert config.angular_velocity_epsilon == 1e-9
        assert config.use_joseph_form is True
        assert isinstance(config.process_noise, ProcessNoise)
        assert isinstance(config.measurement_noise, MeasurementNoise)

    def test_frozen(self):
        config = EKFSlamConfig()
        with pytest.raises(AttributeError):
            config.singular_epsilon = 1.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"initial_landmark_uncertainty": -1.0},
            {"initial_landmark_uncertainty": float("inf")},
            {"singular_epsilon": 0.0},
            {"angular_velocity_epsilon": -1e-9},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EKFSlamConfig(**kwargs)

    def test_noise_types_checked(self):
        with pytest.raises(TypeError):
            EKFSlamConfig(process_noise={"sigma_x": 0.1})


class TestPresets:
    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_all_presets_load(self, name):
        config = EKFSlamConfig.from_preset(name)
        expected = PRESETS[name]["measurement_noise"]["sigma_range"]
        assert config.measurement_noise.sigma_range == expected

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown preset"):
            EKFSlamConfig.from_preset("does-not-exist")


class TestDictAndJson:
    def test_partial_dict_keeps_defaults(self):
        config = EKFSlamConfig.from_dict({"measurement_noise": {"sigma_bearing": 0.1}})
        assert config.measurement_noise.sigma_bearing == 0.1
        assert config.measurement_noise.sigma_range == MeasurementNoise().sigma_range
        assert config.process_noise == ProcessNoise()

    def test_unknown_top_level_key(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            EKFSlamConfig.from_dict({"gating_threshold": 9.0})

    def test_unknown_nested_key(self):
        with pytest.raises(ValueError, match="process_noise"):
            EKFSlamConfig.from_dict({"process_noise": {"sigma_z": 1.0}})

    def test_nested_value_must_be_mapping(self):
        with pytest.raises(ValueError):
            EKFSlamConfig.from_dict({"measurement_noise": 0.1})

    def test_dict_round_trip(self):
        config = EKFSlamConfig.from_preset("noisy")
        assert EKFSlamConfig.from_dict(config.to_dict()) == config

    def test_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "process_noise": {"sigma_x": 0.3, "sigma_y": 0.3, "sigma_theta": 0.1},
            "initial_landmark_uncertainty": 50.0,
            "use_joseph_form": False,
        }))
        config = EKFSlamConfig.from_json(path)
        assert config.process_noise.sigma_x == 0.3
        assert config.initial_landmark_uncertainty == 50.0
        assert config.use_joseph_form is False

    def test_to_json(self, tmp_path):
        path = tmp_path / "out.json"
        config = EKFSlamConfig.from_preset("precise")
        config.to_json(path)
        assert EKFSlamConfig.from_json(path) == config
