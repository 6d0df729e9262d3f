"""
Tests for configuration and source I/O.

Tests cover:
- Config defaults, validation, YAML load/save
- CSV column subsetting and "NA" preservation
- Concurrent source loading and missing-file failures
- Atomic writes
"""

import os
import stat
import pytest
from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reef_timeline.common.config import (
    Config,
    ActorKind,
    BinningStrategy,
    DAY_MS,
    DEFAULT_TIME_INCREMENT_MS,
)
from reef_timeline.common.io import (
    SourcePaths,
    STATION_COLUMNS,
    SHARK_COLUMNS,
    load_sources,
    read_records,
    write_text_atomic,
)


# ============== Fixtures ==============

@pytest.fixture
def csv_dir(tmp_path):
    (tmp_path / "stations.csv").write_text("station,x,y,depth\nA,1.5,2,10\nB,3,4,12\n")
    (tmp_path / "vessel.csv").write_text("Date,lat,long,speed\n01/01/2020 00:00:00 UTC,-5,71,3\n")
    (tmp_path / "sharks.csv").write_text(
        "datetime,animal_id,species,From,To,Movement,sex\n"
        "2020-01-01 06:00:00,0042,Carcharhinus albimarginatus,A,A,NA,F\n"
    )
    (tmp_path / "mantas.csv").write_text(
        "detect_date,receiver,From,To,Movement\n01/01/2020 12:30,M1,B,A,B-A\n"
    )
    return tmp_path


# ============== Config Tests ==============

class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.binning is BinningStrategy.CALENDAR_DAY
        assert config.time_increment_ms == DEFAULT_TIME_INCREMENT_MS == 48 * 60 * 60 * 1000
        assert config.bucket_width_ms == DAY_MS
        assert config.output_var_name == "BERTARELLI_DATA"
        assert config.species_codes["Carcharhinus amblyrhynchos"] is ActorKind.SHARK_SPECIES_B
        assert set(config.actor_legend) == {"s", "g", "m", "v"}

    def test_fixed_increment_width(self):
        config = Config(binning=BinningStrategy.FIXED_INCREMENT, time_increment_ms=3 * DAY_MS)
        assert config.bucket_width_ms == 3 * DAY_MS

    def test_rejects_sub_day_increment(self):
        with pytest.raises(ValueError, match="at least one day"):
            Config(binning=BinningStrategy.FIXED_INCREMENT, time_increment_ms=DAY_MS - 1)

    def test_sub_day_increment_ignored_for_calendar(self):
        assert Config(time_increment_ms=1000).bucket_width_ms == DAY_MS

    def test_rejects_non_positive_increment(self):
        with pytest.raises(ValueError):
            Config(time_increment_ms=0)

    def test_rejects_string_strategy(self):
        with pytest.raises(ValueError):
            Config(binning="calendar_day")

    def test_rejects_bad_var_name(self):
        with pytest.raises(ValueError):
            Config(output_var_name="not a name")

    @pytest.mark.parametrize("code", ["v", "m"])
    def test_rejects_non_shark_species_kind(self, code):
        with pytest.raises(ValueError, match="must be a shark kind"):
            Config.from_dict({"species_codes": {"Carcharhinus albimarginatus": code}})

    def test_rejects_non_shark_species_kind_from_yaml(self, tmp_path):
        path = tmp_path / "timeline.yaml"
        path.write_text("species_codes:\n  Carcharhinus albimarginatus: v\n")
        with pytest.raises(ValueError):
            Config.from_yaml(path)

    def test_defaults_not_shared(self):
        a = Config()
        a.species_codes["x"] = ActorKind.MANTA
        assert "x" not in Config().species_codes

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "timeline.yaml"
        path.write_text(
            "binning: fixed_increment\n"
            "time_increment_hours: 72\n"
            "species_codes:\n"
            "  Carcharhinus albimarginatus: s\n"
            "output_var_name: REEF_DATA\n"
            "output_path: out/reef.js\n"
        )
        config = Config.from_yaml(path)

        assert config.binning is BinningStrategy.FIXED_INCREMENT
        assert config.time_increment_ms == 3 * DAY_MS
        assert config.species_codes == {"Carcharhinus albimarginatus": ActorKind.SHARK_SPECIES_A}
        assert config.output_var_name == "REEF_DATA"
        assert config.output_path == Path("out/reef.js")

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert Config.from_yaml(path) == Config()

    def test_save_and_reload(self, tmp_path):
        config = Config(binning=BinningStrategy.FIXED_INCREMENT, output_var_name="X")
        path = tmp_path / "nested" / "config.yaml"
        config.save(path)
        assert Config.from_yaml(path) == config


# ============== Source I/O Tests ==============

class TestReadRecords:

    def test_column_subset(self, csv_dir):
        rows = read_records(csv_dir / "stations.csv", STATION_COLUMNS)
        assert rows == [
            {"station": "A", "x": "1.5", "y": "2"},
            {"station": "B", "x": "3", "y": "4"},
        ]

    def test_values_stay_strings(self, csv_dir):
        rows = read_records(csv_dir / "sharks.csv", SHARK_COLUMNS)
        assert rows[0]["Movement"] == "NA"
        assert rows[0]["animal_id"] == "0042"
        assert "sex" not in rows[0]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_records(tmp_path / "nope.csv", STATION_COLUMNS)


class TestLoadSources:

    def test_from_dir_defaults(self, tmp_path):
        paths = SourcePaths.from_dir(tmp_path, mantas=tmp_path / "other.csv")
        assert paths.stations == tmp_path / "stations.csv"
        assert paths.mantas == tmp_path / "other.csv"

    def test_loads_all(self, csv_dir):
        tables = load_sources(SourcePaths.from_dir(csv_dir))

        assert len(tables.stations) == 2
        assert tables.vessel[0] == {"Date": "01/01/2020 00:00:00 UTC", "lat": "-5", "long": "71"}
        assert tables.mantas[0]["receiver"] == "M1"
        assert tables.n_actor_rows == 3

    def test_missing_source_fails(self, csv_dir):
        (csv_dir / "vessel.csv").unlink()
        with pytest.raises(FileNotFoundError, match="vessel.csv"):
            load_sources(SourcePaths.from_dir(csv_dir))


class TestWriteTextAtomic:

    def test_writes_and_creates_parents(self, tmp_path):
        path = write_text_atomic("hello", tmp_path / "a" / "b.js")
        assert path.read_text() == "hello"
        assert list(path.parent.iterdir()) == [path]

    def test_replaces_existing(self, tmp_path):
        path = tmp_path / "out.js"
        path.write_text("old")
        write_text_atomic("new", path)
        assert path.read_text() == "new"

    def test_mode_matches_plain_write(self, tmp_path):
        reference = tmp_path / "reference.js"
        reference.write_text("x")
        path = write_text_atomic("x", tmp_path / "data.js")

        assert stat.S_IMODE(path.stat().st_mode) == stat.S_IMODE(reference.stat().st_mode)

    def test_mode_follows_umask(self, tmp_path):
        old = os.umask(0o022)
        try:
            path = write_text_atomic("x", tmp_path / "data.js")
        finally:
            os.umask(old)
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_unwritable_parent(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(OSError):
            write_text_atomic("x", blocker / "out.js")
