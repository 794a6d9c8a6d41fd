"""Runs the external JavaScript bundler that produces the console build."""

from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path

from consolebuild.errors import BundlerError
from consolebuild.observability import BuildLogger


@dataclass(slots=True)
class Bundler:
    working_dir: Path
    logger: BuildLogger = field(default_factory=BuildLogger)
    command: list[str] | None = None

    @property
    def dest(self) -> Path:
        """Build output location."""
        return Path(self.working_dir) / "dist"

    def bundle(self) -> Path:
        self.clean_output()
        self.run_bundler()
        return self.dest

    def clean_output(self) -> None:
        self.logger.debug("Cleaning build output directory...", operation="bundle")
        shutil.rmtree(self.dest, ignore_errors=True)

    def run_bundler(self) -> None:
        self.logger.info("Bundling API Console...", operation="bundle")
        cmd = self.command or self.default_command()
        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.working_dir),
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise BundlerError(
                "Bundler executable not found.",
                hint="Install the console dependencies in the working directory first.",
                context={"operation": "bundle", "command": " ".join(cmd)},
            ) from exc

        if result.stdout:
            self.logger.debug(result.stdout, operation="bundle")
        if result.stderr:
            self.logger.error(result.stderr, operation="bundle")
        if result.returncode != 0:
            raise BundlerError(
                "Bundler failed.",
                hint="Check the bundler output for details.",
                context={
                    "operation": "bundle",
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:2000] if result.stderr else "",
                    "command": " ".join(cmd),
                },
            )
        self.logger.info("Bundler finished.", operation="bundle")

    def default_command(self) -> list[str]:
        executable = Path(self.working_dir) / "node_modules" / ".bin" / "rollup"
        if sys.platform == "win32":
            executable = executable.with_name("rollup.cmd")
        return [str(executable), "-c", "rollup.config.js"]
