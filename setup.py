# -*- coding: utf-8 -*-
import setuptools
import pathlib
import site
import sys

# odd bug with develop (editable) installs, see: https://github.com/pypa/pip/issues/7953
site.ENABLE_USER_SITE = "--user" in sys.argv[1:]

required = [
    "numpy",
    "simplejson>= 3.19.2",
    "mashumaro",
    "loguru",
    "rich>=13.0.0",
    "click>=8.0.0",
    "click-option-group",
]

here = pathlib.Path(__file__).parent.resolve()

long_description = (here / "README.md").read_text(encoding="utf-8")

# Read version
version = {}
with open(here / "src/zlockin/_version.py", "r") as f:
    exec(f.read(), version)

if __name__ == "__main__":
    setuptools.setup(
        name="zlockin",
        version=version["__version__"],
        description="Synchronous (lock-in) impedance meter measurement core.",
        long_description=long_description,
        long_description_content_type="text/markdown",
        keywords=[
            "impedance",
            "lock-in",
            "quadrature demodulation",
            "LCR",
        ],
        classifiers=[
            "License :: OSI Approved :: MIT License",
            "Development Status :: 2 - Pre-Alpha",
        ],
        license="MIT",
        package_dir={"": "src"},
        packages=setuptools.find_packages(
            where="src",
            exclude=["*.test", "*.test.*", "test.*", "test", "test_*"],
        ),
        entry_points={
            "console_scripts": [
                "zlockin=zlockin.cli:cli",
            ],
        },
        install_requires=required,
        extras_require={"test": ["pytest"]},
        python_requires=">= 3.11",
        package_data={"": ["*.md", "*.json", "*.ini"]},
        setup_requires=["wheel"],  # force install of wheel first
    )
# https://setuptools.readthedocs.io/en/latest/userguide/datafiles.html
