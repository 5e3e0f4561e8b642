"""Build configuration for sluice."""
import os
import re

from setuptools import find_packages, setup


def read_version():
    path = os.path.join(os.path.dirname(__file__), "src", "sluice", "__init__.py")
    with open(path, encoding="utf-8") as f:
        return re.search(r'^__version__ = "([^"]+)"', f.read(), re.M).group(1)


setup(
    name="sluice",
    version=read_version(),
    description=(
        "Request dispatch engine with patterned routes, parameter bindings,"
        " scoped filters and a per-request context."
    ),
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "werkzeug>=2.3",
        "jinja2>=3.1",
        "markupsafe>=2.1",
        "click>=8.1",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": ["sluice = sluice.cli:main"],
    },
)
