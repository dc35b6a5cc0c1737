"""
External assembler/linker driver.

Turns the generated assembly text into a Linux executable with two
steps:

    nasm -f elf64 <stem>.asm -o <stem>.o
    ld <stem>.o -o <output>

Failures here are ToolchainError, which is deliberately not a
CompileError: a caller can always tell an invalid expression apart
from a broken or missing toolchain.
"""

from __future__ import annotations
import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from .codegen import DEFAULT_TARGET, TARGET_PROFILES

logger = logging.getLogger(__name__)

DEFAULT_ASSEMBLER = "nasm"
DEFAULT_LINKER = "ld"


class ToolchainError(Exception):
    def __init__(self, message: str, command: Optional[List[str]] = None,
                 returncode: Optional[int] = None, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f"\n{stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"{message}{detail}")


def write_assembly(asm_text: str, path: Union[str, Path]) -> Path:
    """Write assembly text to path with a trailing newline."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not asm_text.endswith("\n"):
        asm_text += "\n"
    path.write_text(asm_text, encoding="utf-8")
    logger.info("Wrote assembly to %s", path)
    return path


def _run(command: List[str]) -> None:
    tool = command[0]
    if shutil.which(tool) is None:
        raise ToolchainError(f"'{tool}' not found on PATH", command=command)
    logger.info("Running: %s", " ".join(command))
    proc = subprocess.run(command, capture_output=True, text=True)
    if proc.returncode != 0:
        raise ToolchainError(f"{tool} failed with exit code {proc.returncode}",
                             command=command, returncode=proc.returncode,
                             stderr=proc.stderr)


def build_executable(asm_text: str, output: Union[str, Path], *,
                     workdir: Optional[Union[str, Path]] = None,
                     target: str = DEFAULT_TARGET,
                     assembler: str = DEFAULT_ASSEMBLER,
                     linker: str = DEFAULT_LINKER) -> Path:
    """Assemble and link asm_text into the executable at output.

    The .asm and .o intermediates are named after output's stem and
    placed in workdir (default: next to output). Returns the path of the
    executable.
    """
    output = Path(output)
    workdir = Path(workdir) if workdir is not None else output.parent
    profile = TARGET_PROFILES.get(target, TARGET_PROFILES[DEFAULT_TARGET])

    asm_path = write_assembly(asm_text, workdir / f"{output.stem}.asm")
    obj_path = workdir / f"{output.stem}.o"

    _run([assembler, "-f", profile["obj_format"], str(asm_path), "-o", str(obj_path)])
    _run([linker, str(obj_path), "-o", str(output)])

    logger.info("Linked executable %s", output)
    return output
