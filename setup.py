#!/usr/bin/env python3
"""
Setup script for keyshelf.

Install with `pip install .` or, for development, `pip install -e '.[dev]'`.
"""

import re
import sys
from pathlib import Path

if sys.version_info < (3, 11):
    sys.exit("Error: keyshelf requires Python 3.11 or higher.")

from setuptools import find_packages, setup

here = Path(__file__).parent

version_content = (here / "src" / "keyshelf" / "__version__.py").read_text(encoding="utf-8")
version_match = re.search(r'^__version__\s*=\s*["\']([^"\']+)["\']', version_content, re.M)
version = version_match.group(1) if version_match else "0.1.0"

readme_path = here / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")
    long_description_content_type = "text/markdown"
else:
    long_description = "Autocrypt secret key manager for OpenPGP mail clients"
    long_description_content_type = "text/plain"

# Core dependencies
install_requires = [
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "python-gnupg>=0.5.2",
]

# Development dependencies
extras_require = {
    "dev": [
        "pytest>=7.4.0",
        "pytest-asyncio>=0.21.0",
        "pytest-cov>=4.1.0",
        "black>=23.0.0",
        "flake8>=6.1.0",
        "mypy>=1.7.0",
    ],
}
extras_require["test"] = extras_require["dev"][:3]

setup(
    name="keyshelf",
    version=version,
    description="Autocrypt secret key manager for OpenPGP mail clients",
    long_description=long_description,
    long_description_content_type=long_description_content_type,
    author="keyshelf developers",
    license="MIT",
    python_requires=">=3.11",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "keyshelf=keyshelf.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Communications :: Email",
        "Topic :: Security :: Cryptography",
    ],
    keywords=["email", "encryption", "gpg", "autocrypt", "openpgp"],
)
