# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import os
import logging
import re

from setuptools import setup

package_name = "skillimpute"


readme_dir = os.path.dirname(__file__)
readme_filename = os.path.join(readme_dir, "README.md")

try:
    with open(readme_filename, "r") as f:
        readme_markdown = f.read()
except IOError:
    logging.warning("Failed to load %s" % readme_filename)
    readme_markdown = ""

with open(os.path.join(readme_dir, package_name, "__init__.py"), "r") as f:
    version = re.search(r'^__version__\s*=\s*[\'"]([^\'"]*)[\'"]', f.read(), re.MULTILINE).group(1)

if __name__ == "__main__":
    setup(
        name=package_name,
        version=version,
        description="Cross-validated low-rank completion of sparse skill matrices",
        license="http://www.apache.org/licenses/LICENSE-2.0.html",
        classifiers=[
            "Development Status :: 4 - Beta",
            "Operating System :: OS Independent",
            "Intended Audience :: Science/Research",
            "License :: OSI Approved :: Apache Software License",
            "Programming Language :: Python :: 3",
            "Topic :: Scientific/Engineering :: Information Analysis",
        ],
        install_requires=[
            "numpy>=1.20",
            "scikit-learn>=1.0",
            "pandas>=1.3",
            "joblib>=1.0",
        ],
        extras_require={
            "test": ["pytest>=7"],
        },
        python_requires=">=3.8",
        long_description=readme_markdown,
        long_description_content_type="text/markdown",
        packages=[package_name],
    )
