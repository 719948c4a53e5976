# =============================================================================
# test_config.py - Configuration Tests
# =============================================================================

from pathlib import Path

from asm24.config import AssemblerConfig


class TestDefaults:
    """Test default configuration values."""

    def test_defaults(self):
        config = AssemblerConfig()
        assert config.source_suffix == ".as"
        assert config.object_suffix == ".ob"
        assert config.externals_suffix == ".ext"
        assert config.entries_suffix == ".ent"
        assert config.max_errors == 1000
        assert config.output_dir is None
        assert config.write_empty_tables is True
        assert config.log_level == "WARNING"

    def test_source_suffix_is_appended(self):
        """Base names keep any dots they already have."""
        assert AssemblerConfig().source_path("dir/prog.v2") == Path("dir/prog.v2.as")

    def test_output_paths_beside_source(self):
        paths = AssemblerConfig().output_paths("dir/prog")
        assert paths == {
            "object": Path("dir/prog.ob"),
            "externals": Path("dir/prog.ext"),
            "entries": Path("dir/prog.ent"),
        }

    def test_output_paths_in_output_dir(self):
        config = AssemblerConfig(output_dir=Path("build"))
        assert config.output_paths("dir/prog")["object"] == Path("build/prog.ob")


class TestFromEnv:
    """Test AssemblerConfig.from_env."""

    def test_empty_environment(self, monkeypatch):
        for name in (
            "ASM24_SOURCE_SUFFIX",
            "ASM24_MAX_ERRORS",
            "ASM24_OUTPUT_DIR",
            "ASM24_WRITE_EMPTY_TABLES",
            "ASM24_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)
        assert AssemblerConfig.from_env() == AssemblerConfig()

    def test_values_from_environment(self, monkeypatch):
        monkeypatch.setenv("ASM24_SOURCE_SUFFIX", ".asm")
        monkeypatch.setenv("ASM24_MAX_ERRORS", "25")
        monkeypatch.setenv("ASM24_OUTPUT_DIR", "/tmp/out")
        monkeypatch.setenv("ASM24_WRITE_EMPTY_TABLES", "no")
        monkeypatch.setenv("ASM24_LOG_LEVEL", "debug")

        config = AssemblerConfig.from_env()
        assert config.source_suffix == ".asm"
        assert config.max_errors == 25
        assert config.output_dir == Path("/tmp/out")
        assert config.write_empty_tables is False
        assert config.log_level == "DEBUG"

    def test_invalid_values_ignored(self, monkeypatch):
        monkeypatch.setenv("ASM24_MAX_ERRORS", "lots")
        monkeypatch.setenv("ASM24_LOG_LEVEL", "LOUD")
        config = AssemblerConfig.from_env()
        assert config.max_errors == 1000
        assert config.log_level == "WARNING"

    def test_non_positive_max_errors_ignored(self, monkeypatch):
        monkeypatch.setenv("ASM24_MAX_ERRORS", "0")
        assert AssemblerConfig.from_env().max_errors == 1000
