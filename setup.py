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

from setuptools import setup

this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, "README.MD"), encoding="utf-8") as f:
    long_description = f.read()

# the version is read from the package source, which cannot be imported
# before its dependencies are installed.
with open(path.join(this_directory, "atlaspy", "__init__.py"), encoding="utf-8") as f:
    version_match = re.search(r'^__version__: str = "([^"]+)"', f.read(), re.M)
    if version_match is None:
        raise RuntimeError("Unable to find the package version.")
    __version__ = version_match.group(1)


def read_requirements(file_name: str) -> list:
    with open(path.join(this_directory, file_name), encoding="utf-8") as f:
        return [
            req_line.strip()
            for req_line in f.readlines()
            if req_line.strip() != ""
            if req_line.strip()[0] != "#"
            if "-e ." not in req_line
        ]


setup(
    name="atlaspy",
    packages=[
        "atlaspy",
        "atlaspy.data",
        "atlaspy.data.utils",
        "atlaspy.exceptions",
        "atlaspy.settings",
        "atlaspy.utils",
    ],
    package_data={"atlaspy": ["py.typed"]},
    version=__version__,
    license="Apache license 2.0",
    description="A fluent, driver-like collection interface over the HTTP Data API",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=["Data API", "MongoDB", "query builder"],
    python_requires=">=3.8",
    install_requires=read_requirements("requirements.txt"),
    extras_require={"test": read_requirements("requirements-test.txt")},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Database :: Front-Ends",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
