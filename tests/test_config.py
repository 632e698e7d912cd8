import json

import pytest

import config
from config import AmbilightSettings, load_settings


class TestDefaults:
    def test_reference_configuration(self):
        settings = AmbilightSettings()
        assert settings.total_leds == 178
        assert settings.frame_size == 536
        assert settings.baud_rate == 115200
        assert settings.color_correction == (1.0, 0.95, 0.85)
        assert settings.gamma == 2.2
        assert settings.sample_step == 2

    def test_layout(self):
        layout = AmbilightSettings().layout
        assert layout.counts == (57, 32, 57, 32)
        assert layout.thickness == 10
        assert layout.resize_width == 320

    def test_frame_interval(self):
        assert AmbilightSettings(fps=20).frame_interval == pytest.approx(0.05)


class TestValidation:
    @pytest.mark.parametrize("option,value", [
        ("num_top", 0),
        ("num_left", -1),
        ("edge_thickness", 0),
        ("resize_width", 20),
        ("sample_step", 0),
        ("fps", 0),
        ("baud_rate", 0),
        ("color_correction", (1.0, 1.0)),
        ("color_correction", (1.0, 1.5, 1.0)),
        ("color_correction", (1.0, -0.1, 1.0)),
        ("gamma", 0),
        ("capture_backend", "gpu"),
        ("stats_every", 0),
        ("open_attempts", 0),
        ("max_write_failures", 0),
        ("write_timeout", 0),
    ])
    def test_rejects_invalid_option(self, option, value):
        with pytest.raises(ValueError):
            AmbilightSettings(**{option: value})

    @pytest.mark.parametrize("option,value", [
        ("num_top", 57.5),
        ("num_top", "57"),
        ("num_left", True),
        ("edge_thickness", 10.0),
        ("resize_width", "320"),
        ("sample_step", 2.5),
        ("stats_every", None),
        ("open_attempts", 1.5),
        ("max_write_failures", "10"),
    ])
    def test_rejects_non_integer(self, option, value):
        """Counts and sizes must be real ints, not floats, strings or bools."""
        with pytest.raises(ValueError, match="integer"):
            AmbilightSettings(**{option: value})

    def test_gain_cap(self):
        AmbilightSettings(color_correction=(config.MAX_CHANNEL_GAIN, 1.0, 0.0))


class TestLoadSettings:
    def test_defaults_without_file(self):
        assert load_settings() == AmbilightSettings()

    def test_json_overrides(self, tmp_path):
        path = tmp_path / "ambilight.json"
        path.write_text(json.dumps({
            "num_top": 40,
            "num_bottom": 40,
            "fps": 30,
            "color_correction": [1.0, 1.0, 0.9],
        }))

        settings = load_settings(str(path))

        assert settings.total_leds == 40 + 32 + 40 + 32
        assert settings.fps == 30
        assert settings.color_correction == (1.0, 1.0, 0.9)

    def test_explicit_overrides_win(self, tmp_path):
        path = tmp_path / "ambilight.json"
        path.write_text(json.dumps({"serial_port": "/dev/ttyUSB0"}))

        settings = load_settings(str(path), serial_port="/dev/ttyACM1", fps=None)

        assert settings.serial_port == "/dev/ttyACM1"
        assert settings.fps == config.FPS

    def test_unknown_option(self, tmp_path):
        path = tmp_path / "ambilight.json"
        path.write_text(json.dumps({"brightness": 100}))
        with pytest.raises(ValueError, match="brightness"):
            load_settings(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            load_settings(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "ambilight.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_settings(str(path))

    def test_json_must_be_object(self, tmp_path):
        path = tmp_path / "ambilight.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            load_settings(str(path))

    @pytest.mark.parametrize("count", [57.5, "57"])
    def test_non_integer_count_in_json(self, tmp_path, count):
        path = tmp_path / "ambilight.json"
        path.write_text(json.dumps({"num_top": count}))
        with pytest.raises(ValueError, match="num_top"):
            load_settings(str(path))

    def test_wrong_value_type(self, tmp_path):
        path = tmp_path / "ambilight.json"
        path.write_text(json.dumps({"fps": "fast"}))
        with pytest.raises(ValueError):
            load_settings(str(path))
