"""Unit tests for msceqf.config."""

import pytest
import yaml

from msceqf.config import (
    EUROC_IMU_TITLES,
    DataParserConfig,
    MSCEqFConfig,
    SymmetryConfig,
    load_config,
)


class TestSymmetryConfig:
    """Test suite for SymmetryConfig."""

    def test_default_gravity(self):
        assert SymmetryConfig().gravity_magnitude == 9.81

    @pytest.mark.parametrize("g", [0.0, -9.81, float("nan")])
    def test_rejects_invalid_gravity(self, g):
        with pytest.raises(ValueError, match="gravity_magnitude"):
            SymmetryConfig(gravity_magnitude=g)


class TestDataParserConfig:
    """Test suite for DataParserConfig."""

    def test_titles_are_normalized(self):
        config = DataParserConfig(image_header_titles=[" #Timestamp ", "FileName"])
        assert config.image_header_titles == ("#timestamp", "filename")
        assert config.imu_header_titles == tuple(t.lower() for t in EUROC_IMU_TITLES)

    @pytest.mark.parametrize("count", [7, 9, 18])
    def test_rejects_wrong_groundtruth_title_count(self, count):
        with pytest.raises(ValueError, match="groundtruth_header_titles"):
            DataParserConfig(groundtruth_header_titles=[f"c{i}" for i in range(count)])

    @pytest.mark.parametrize("count", [8, 11, 14, 17])
    def test_accepts_groundtruth_title_counts(self, count):
        config = DataParserConfig(groundtruth_header_titles=[f"c{i}" for i in range(count)])
        assert len(config.groundtruth_header_titles) == count

    def test_rejects_bad_delimiter(self):
        with pytest.raises(ValueError, match="delimiter"):
            DataParserConfig(delimiter=",,")


class TestLoadConfig:
    """Test suite for YAML loading."""

    def test_round_trip_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "symmetry": {"gravity_magnitude": 9.80665},
                    "parser": {"delimiter": ";", "time_offset": -0.01},
                }
            )
        )
        config = load_config(path)
        assert config.symmetry.gravity_magnitude == 9.80665
        assert config.parser.delimiter == ";"
        assert config.parser.time_offset == -0.01

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == MSCEqFConfig()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_unknown_section_raises(self):
        with pytest.raises(ValueError, match="Unknown configuration sections"):
            MSCEqFConfig.from_dict({"filter": {}})

    def test_unknown_key_raises(self):
        with pytest.raises(ValueError, match="Unknown keys in 'symmetry'"):
            MSCEqFConfig.from_dict({"symmetry": {"small_angle": 1e-6}})

    def test_non_mapping_file_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config(path)
