#!/usr/bin/env python3
"""Script to build the Lambda dependencies layer for the webhook handler."""
import argparse
import shutil
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Packages the webhook needs beyond what the Lambda Python runtime ships (boto3)
LAYER_PACKAGES = ["aiohttp>=3.9"]


def build_layer(output_dir: Path, python_version: str, platform: str) -> bool:
    """
    Install layer packages into <output_dir>/python.

    Args:
        output_dir: Layer root directory (replaced if it exists)
        python_version: Target Lambda Python version, e.g. "3.11"
        platform: pip platform tag matching the Lambda architecture

    Returns:
        True if pip succeeded, False otherwise
    """
    if output_dir.exists():
        shutil.rmtree(output_dir)
    target = output_dir / "python"
    target.mkdir(parents=True)

    print(f"Building layer in: {output_dir}")
    result = subprocess.run(
        [
            sys.executable,
            "-m",
            "pip",
            "install",
            "--target",
            str(target),
            "--platform",
            platform,
            "--python-version",
            python_version,
            "--only-binary=:all:",
            *LAYER_PACKAGES,
        ],
    )
    if result.returncode != 0:
        print("Failed to build layer")
        return False

    print("Layer built successfully!")
    return True


def main():
    parser = argparse.ArgumentParser(description="Build the Lambda dependencies layer")
    parser.add_argument("--output", default=str(PROJECT_ROOT / ".lambda-layer"), help="Layer directory")
    parser.add_argument("--python-version", default="3.11", help="Lambda Python version")
    parser.add_argument("--platform", default="manylinux2014_x86_64", help="pip platform tag")
    args = parser.parse_args()

    success = build_layer(Path(args.output), args.python_version, args.platform)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
