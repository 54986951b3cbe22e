# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import re
from os import path

from setuptools import find_packages, setup

this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, "README.MD"), encoding="utf-8") as f:
    long_description = f.read()

with open(path.join(this_directory, "kagodb", "__init__.py"), encoding="utf-8") as f:
    version_match = re.search(r'^__version__: str = "([^"]+)"', f.read(), re.M)
if version_match is None:
    raise RuntimeError("Unable to find the package version.")
__version__ = version_match.group(1)

with open(path.join(this_directory, "requirements.txt"), encoding="utf-8") as f:
    install_requires = [
        req_line.strip()
        for req_line in f.readlines()
        if req_line.strip() != ""
        if req_line.strip()[0] != "#"
        if "-e ." not in req_line
    ]

setup(
    name="kagodb",
    packages=find_packages(include=["kagodb", "kagodb.*"]),
    package_data={"kagodb": ["py.typed"]},
    version=__version__,
    license="Apache license 2.0",
    description="KagoDB is a pluggable document collection with lazy query cursors",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=["document", "collection", "cursor", "yaml", "json"],
    python_requires=">=3.9",
    install_requires=install_requires,
    extras_require={
        "test": [
            "blockbuster>=1.5.5",
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-httpserver>=1.0.8",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)
