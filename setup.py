#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os.path
import re
from pkgutil import walk_packages

from setuptools import setup


def find_packages(path=["."], prefix=""):
    yield prefix
    prefix = prefix + "."
    for _, name, ispkg in walk_packages(path, prefix):
        if ispkg:
            yield name


def read_requirements(path):
    requirements = []
    with open(path) as requirements_file:
        for req in requirements_file.read().splitlines():
            # skip comments, blank and hash lines
            if not req.strip() or re.match(r"\s*#", req) or re.match(r"\s*--hash", req):
                continue
            requirements.append(req.split(" ")[0])
    return requirements


with open(os.path.join("ciwatch", "version.txt"), "r") as version_file:
    version = version_file.read().strip()

with open("README.rst", "rb") as readme_file:
    readme = readme_file.read().decode("utf-8")

with open("HISTORY.rst", "rb") as history_file:
    history = history_file.read().decode("utf-8")

setup(
    name="ciwatch",
    version=version,
    description="Build metrics, events and logs from a CI server to Datadog",
    long_description=readme + "\n\n" + history,
    long_description_content_type="text/x-rst",
    author="ciwatch contributors",
    packages=list(find_packages(["ciwatch"], "ciwatch")),
    package_dir={"ciwatch": "ciwatch"},
    package_data={"ciwatch": ["version.txt"]},
    entry_points={
        "console_scripts": [
            "ciwatch=ciwatch.cli.cli:main",
        ]
    },
    include_package_data=True,
    install_requires=read_requirements(os.path.join("requirements", "prod.txt")),
    extras_require={"test": read_requirements(os.path.join("requirements", "dev.txt"))},
    license="MIT license",
    zip_safe=False,
    keywords="ciwatch datadog jenkins statsd",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    test_suite="ciwatch",
    python_requires=">=3.9",
)
