#!/usr/bin/env python
# -*- encoding: utf-8 -*-
import io
import re
from os.path import dirname, join

from setuptools import find_packages, setup


def read(*names, **kwargs):
    return io.open(
        join(dirname(__file__), *names), encoding=kwargs.get("encoding", "utf8")
    ).read()


def find_version(*file_paths):
    contents = read(*file_paths)
    match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", contents, re.M)
    if match:
        return match.group(1)
    raise RuntimeError("Unable to find version string.")


TESTS_REQUIRE = ["pytest", "pytest-mock"]

setup(
    name="dscpublish",
    python_requires=">=3.9",
    version=find_version("src", "dscpublish", "__init__.py"),
    license="MIT",
    description="CLI to package DSC configurations and publish them to Azure blob storage",
    long_description="""`dscpublish` is both a CLI and library that packages a PowerShell
Desired State Configuration script, together with the modules it imports, into
a zip archive and publishes it to a local path or an Azure blob container.""",
    long_description_content_type="text/markdown",
    author_email="opensource@fidelity.com",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Unix",
        "Operating System :: POSIX",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: System :: Systems Administration",
        "Topic :: Utilities",
    ],
    keywords=["dsc", "powershell", "azure", "cli"],
    install_requires=[
        "azure-core",
        "azure-identity",
        "azure-storage-blob>=12",
        "PyYAML>=3.10",
    ],
    tests_require=TESTS_REQUIRE,
    extras_require={"test": TESTS_REQUIRE},
    entry_points={
        "console_scripts": [
            "dscpublish = dscpublish.cli:main",
        ]
    },
)
