# -*- coding: utf-8 -*-
"""bootstrap-token-lifecycle a module for managing short lived cluster bootstrap tokens.

This module creates bootstrap tokens, validates them, works out when they are due for
rotation and refreshes them. Token records are kept in a secret store, Google Cloud
Secret Manager or any other store implementing the small store interface.

"""

import setuptools
import re
from io import open

VERSIONFILE="bootstrap_token_lifecycle/_version.py"
verstrline = open(VERSIONFILE, "rt").read()
VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VSRE, verstrline, re.M)
if mo:
    verstr = mo.group(1)
else:
    raise RuntimeError("Unable to find version string in %s." % (VERSIONFILE,))

with open("README.md", "r", encoding='utf-8') as fh:
    long_description = fh.read()

setuptools.setup(
    name='bootstrap_token_lifecycle',
    version=verstr,
    author="Mike Moore",
    author_email="z_z_zebra@yahoo.com",
    description="Lifecycle of short lived cluster bootstrap tokens, creation, expiry and rotation against a secret store",
    long_description_content_type="text/markdown",
    long_description=long_description,
    url="https://github.com/Mikemoore63/bootstrap-token-lifecycle",
    packages=setuptools.find_packages(),
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    license="MIT",
    scripts=[],
    python_requires=">=3.8",
    install_requires=[
        "google-cloud-secret-manager~=2.0",
        "google-api-core>=2.0,<3.0",
        "google-auth>=2.0,<3.0",
        "google-crc32c~=1.0",
        "grpcio~=1.0",
        "python-dateutil~=2.0",
        "pytz>=2022.0"
    ],
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],

)
