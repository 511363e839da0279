#!/usr/bin/env python
# -*- coding: utf-8 -*-

# System imports
from setuptools import setup, Command
from shutil import rmtree
import os
import io
import glob
import sys

# Version number
major = 2026
minor = "1.0"
VERSION = "{0}.{1}".format(major, minor)

DESCRIPTION = (
    "Single cell cardiac electrophysiology: stiff integration of ionic "
    "models under periodic pacing and action potential analysis."
)

here = os.path.abspath(os.path.dirname(__file__))

# Import the README and use it as the long-description.
try:
    with io.open(os.path.join(here, "README.md"), encoding="utf-8") as f:
        long_description = "\n" + f.read()
except FileNotFoundError:
    long_description = DESCRIPTION


requirements = [
    "numpy",
    "scipy",
    "modelparameters",
]

test_requirements = ["pytest"]


class clean(Command):
    """
    Cleans *.pyc and build directories so you should get the same copy as
    is in the VCS.
    """

    description = "remove build files"
    user_options = [("all", "a", "the same")]

    def initialize_options(self):
        self.all = None

    def finalize_options(self):
        pass

    def run(self):
        for pattern in ["**/*.pyc", "**/__pycache__", "build", "dist", "*.egg-info"]:
            for path in glob.glob(os.path.join(here, pattern), recursive=True):
                if os.path.isdir(path):
                    rmtree(path)
                else:
                    os.remove(path)


class run_tests(Command):
    """
    Runs all tests under the tests/ folder
    """

    description = "run all tests"
    user_options = []  # distutils complains if this is not here.

    def __init__(self, *args):
        self.args = args[0]  # so we can pass it to other classes
        Command.__init__(self, *args)

    def initialize_options(self):  # distutils wants this
        pass

    def finalize_options(self):  # this too
        pass

    def run(self):
        os.system("{0} -m pytest tests".format(sys.executable))


setup(
    name="singlecell",
    version=VERSION,
    description=DESCRIPTION,
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="The Singlecell developers",
    license="LGPLv3+",
    packages=[
        "singlecell",
        "singlecell.common",
        "singlecell.model",
        "singlecell.models",
        "singlecell.solver",
        "singlecell.analysis",
    ],
    python_requires=">=3.7",
    install_requires=requirements,
    extras_require={"test": test_requirements},
    cmdclass={"test": run_tests, "clean": clean},
)
