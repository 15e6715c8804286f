# SPDX-License-Identifier: FSFAP
# Copyright (C) 2025 The Artfolio Developers
#
# Copying and distribution of this file, with or without modification,
# are permitted in any medium without royalty provided the copyright
# notice and this notice are preserved.  This file is offered as-is,
# without any warranty.

import os
from setuptools import setup, find_packages

# This directory
dir_setup = os.path.dirname(os.path.realpath(__file__))

with open(os.path.join(dir_setup, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

with open(os.path.join(dir_setup, "artfolio", "version.py")) as f:
    # Defines __version__
    exec(f.read())

client_install_requires = [
    "arrow>=1.1.1",
    "Pillow>=7.0.0",
    "platformdirs>=2.6.0",
    "pydantic>=2.0",
    "PyQt6",
    "requests",
    "urllib3>=1.26",
    'tomli>=2.0.1 ; python_version<"3.11"',  # until we drop 3.10
    "tomlkit>=0.11.4",
]

tests_require = [
    "pytest",
    "pytest-qt",
]


setup(
    name="artfolio",
    version=__version__,  # noqa: F821
    description="Artfolio: play back, annotate and react to student artwork",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="The Artfolio Developers",
    license="AGPLv3+",
    python_requires=">=3.9",
    packages=find_packages(include=["artfolio", "artfolio.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: GNU Affero General Public License v3 or later (AGPLv3+)",
        "Development Status :: 3 - Alpha",
        "Operating System :: OS Independent",
        "Topic :: Education",
    ],
    entry_points={
        "console_scripts": [
            "artfolio-client=artfolio.client.__main__:main",
        ],
    },
    install_requires=client_install_requires,
    extras_require={"test": tests_require},
)
