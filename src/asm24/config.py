"""
asm24 Configuration
===================

Assembler settings: file suffixes, error threshold, output placement and
logging level. Configuration can come from:
- Default values (defined here)
- Environment variables (AssemblerConfig.from_env)
- Command-line options (applied by the CLI on top of the above)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class AssemblerConfig:
    """
    Configuration for assembling source files.

    Attributes:
        source_suffix: Appended to each base name given on the command line
        object_suffix: Suffix of the object image file
        externals_suffix: Suffix of the external-reference table
        entries_suffix: Suffix of the entry-symbol table
        max_errors: Errors collected per file before giving up on it
        output_dir: Directory for output files (None: beside the source)
        write_empty_tables: Write .ext/.ent files even when they have no lines
        log_level: Root logging level used by the CLI
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # FILE NAMING
    # ═══════════════════════════════════════════════════════════════════════════

    source_suffix: str = ".as"
    object_suffix: str = ".ob"
    externals_suffix: str = ".ext"
    entries_suffix: str = ".ent"

    # ═══════════════════════════════════════════════════════════════════════════
    # DIAGNOSTICS
    # ═══════════════════════════════════════════════════════════════════════════

    max_errors: int = 1000
    log_level: str = "WARNING"

    # ═══════════════════════════════════════════════════════════════════════════
    # OUTPUT
    # ═══════════════════════════════════════════════════════════════════════════

    output_dir: Optional[Path] = None
    write_empty_tables: bool = True

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create AssemblerConfig from environment variables.

        Environment variables (all optional):
            ASM24_SOURCE_SUFFIX: Source file suffix (e.g. ".as")
            ASM24_MAX_ERRORS: Per-file error threshold (positive integer)
            ASM24_OUTPUT_DIR: Output directory
            ASM24_WRITE_EMPTY_TABLES: "0"/"false"/"no" to skip empty tables
            ASM24_LOG_LEVEL: DEBUG, INFO, WARNING or ERROR

        Returns:
            AssemblerConfig with values from environment variables
        """
        config = cls()

        if suffix := os.environ.get("ASM24_SOURCE_SUFFIX"):
            config.source_suffix = suffix

        if max_errors := os.environ.get("ASM24_MAX_ERRORS"):
            try:
                value = int(max_errors)
                if value > 0:
                    config.max_errors = value
            except ValueError:
                pass  # Ignore invalid values

        if output_dir := os.environ.get("ASM24_OUTPUT_DIR"):
            config.output_dir = Path(output_dir)

        if empty_tables := os.environ.get("ASM24_WRITE_EMPTY_TABLES"):
            config.write_empty_tables = empty_tables.strip().lower() not in ("0", "false", "no")

        if log_level := os.environ.get("ASM24_LOG_LEVEL"):
            if log_level.upper() in LOG_LEVELS:
                config.log_level = log_level.upper()

        return config

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    def source_path(self, base: str | Path) -> Path:
        """Source file for a base name (suffix appended, not replaced)."""
        return Path(f"{base}{self.source_suffix}")

    def output_base(self, base: str | Path) -> Path:
        """Base path for output files, honouring output_dir."""
        base = Path(base)
        if self.output_dir is not None:
            return self.output_dir / base.name
        return base

    def output_paths(self, base: str | Path) -> dict[str, Path]:
        """
        Output file paths for a base name.

        Returns:
            Mapping of "object", "externals" and "entries" to paths
        """
        out = self.output_base(base)
        return {
            "object": Path(f"{out}{self.object_suffix}"),
            "externals": Path(f"{out}{self.externals_suffix}"),
            "entries": Path(f"{out}{self.entries_suffix}"),
        }
