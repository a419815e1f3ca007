import os
from codecs import open
from setuptools import setup, find_packages


here = os.path.abspath(os.path.dirname(__file__))


# Get the long description from the README file
with open(os.path.join(here, "README.rst"), encoding="utf-8") as f:
    long_description = f.read()


setup(
    name="gini-bridge-deploy",
    version="0.1.0",
    description="deploy upgradeable bridge contracts",
    long_description=long_description,
    author="Gini-Network",
    license="MIT",
    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        # How mature is this project? Common values are
        #   3 - Alpha
        #   4 - Beta
        #   5 - Production/Stable
        "Development Status :: 2 - Pre-Alpha",
        # Indicate who your project is intended for
        "Intended Audience :: Developers",
        # Pick your license as you wish (should match "license" above)
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],
    # What does your project relate to?
    keywords="ethereum proxy upgradeable deploy",
    packages=find_packages(exclude=["contrib", "docs", "tests"]),
    package_data={"gbdeploy": ["contracts/*.json"]},
    install_requires=[
        "web3>=7.0.0,<8.0.0",
        "eth-account>=0.13.0",
        "eth-utils>=5.0.0",
        "hexbytes>=1.0.0",
        "attrs>=21.3.0",
        "click>=8.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={"test": ["pytest>=7.0", "web3[tester]>=7.0.0,<8.0.0"]},
    python_requires=">=3.8",
    # To provide executable scripts, use entry points in preference to the
    # "scripts" keyword. Entry points provide cross-platform support and allow
    # pip to create the appropriate form of executable for the target platform.
    entry_points="""
    [console_scripts]
    gb-deploy=gbdeploy.cli:cli
    """,
)
