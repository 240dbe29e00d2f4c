#!/usr/bin/python
# -*- encoding: utf-8 -*-
import ast
import re

from setuptools import find_packages
from setuptools import setup

## The version number lives in davkit/__init__.py only
_version_re = re.compile(r"__version__\s+=\s+(.*)")
with open("davkit/__init__.py", "rb") as f:
    version = str(
        ast.literal_eval(_version_re.search(f.read().decode("utf-8")).group(1))
    )

if __name__ == "__main__":
    test_packages = [
        "pytest",
        "pytest-asyncio",
        "pytest-coverage",
        "coverage",
    ]

    setup(
        name="davkit",
        version=version,
        description="WebDAV/CalDAV/CardDAV request and multistatus toolkit",
        long_description=open("README.md").read(),
        long_description_content_type="text/markdown",
        classifiers=[
            "Development Status :: 3 - Alpha",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: Apache Software License",
            "Operating System :: OS Independent",
            "Programming Language :: Python",
            "Programming Language :: Python :: 3",
            "Topic :: Office/Business :: Scheduling",
            "Topic :: Software Development :: Libraries " ":: Python Modules",
        ],
        keywords="webdav caldav carddav",
        license="Apache-2.0",
        python_requires=">=3.9",
        packages=find_packages(exclude=["tests", "tests.*"]),
        include_package_data=True,
        zip_safe=False,
        install_requires=[
            "vobject",
            "lxml",
            "requests",
            "aiohttp>=3.12",
            "icalendar",
            "typing_extensions",
        ],
        extras_require={
            "test": test_packages,
        },
    )
