"""Build the Lambda bundle staged by the CDK stack as the function asset."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import shutil
import subprocess
import sys

logger = logging.getLogger(__name__)

TARGET_PLATFORM = "manylinux_2_17_aarch64"
TARGET_IMPLEMENTATION = "cp"
TARGET_PYTHON_VERSION = "3.12"


def _copy_tree(source: Path, destination: Path) -> None:
    if not source.exists():
        raise FileNotFoundError(f"Missing source path: {source}")
    shutil.copytree(source, destination, dirs_exist_ok=True)


def _remove_tree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)


def _cleanup_bundle(output_dir: Path) -> None:
    for cache_dir in output_dir.rglob("__pycache__"):
        shutil.rmtree(cache_dir)
    for pattern in ("*.pyc", "*.pyo"):
        for cache_file in output_dir.rglob(pattern):
            cache_file.unlink()


def _install_dependencies(requirements: Path, output_dir: Path) -> None:
    if not requirements.is_file():
        raise FileNotFoundError(f"Missing requirements file: {requirements}")

    env = os.environ.copy()
    env.update({"PYTHONDONTWRITEBYTECODE": "1", "PYTHONHASHSEED": "0"})

    logger.info("Installing Lambda Python dependencies...")
    subprocess.run(
        [
            sys.executable,
            "-m",
            "pip",
            "install",
            "-r",
            str(requirements),
            "-t",
            str(output_dir),
            "--no-compile",
            "--platform",
            TARGET_PLATFORM,
            "--only-binary=:all:",
            "--implementation",
            TARGET_IMPLEMENTATION,
            "--python-version",
            TARGET_PYTHON_VERSION,
        ],
        check=True,
        cwd=requirements.parent,
        env=env,
    )


def build_bundle(source_root: Path, output_dir: Path) -> None:
    """Install dependencies and copy ``lambda/`` and ``src/`` into the bundle."""
    _remove_tree(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    _install_dependencies(source_root / "requirements.txt", output_dir)
    _copy_tree(source_root / "lambda", output_dir / "lambda")
    _copy_tree(source_root / "src", output_dir / "src")
    _cleanup_bundle(output_dir)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--source-root",
        default=str(Path(__file__).resolve().parents[1]),
        help="Path to backend source root.",
    )
    parser.add_argument(
        "--output-dir",
        default="",
        help="Output directory for the bundled assets.",
    )
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = _parse_args()
    source_root = Path(args.source_root).resolve()
    output_dir = (
        Path(args.output_dir).resolve()
        if args.output_dir
        else source_root / ".lambda-build" / "base"
    )

    logger.info("Building Lambda bundle in %s", output_dir)
    build_bundle(source_root, output_dir)
    logger.info("Lambda bundle ready.")


if __name__ == "__main__":
    main()
