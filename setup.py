import os.path
import re

from setuptools import find_namespace_packages, setup

VERSION_RE = re.compile(r"""__version__ = ['"]([0-9.]+)['"]""")
BASE_PATH = os.path.dirname(__file__)


with open(os.path.join(BASE_PATH, "socks5gate", "__init__.py")) as f:
    try:
        version = VERSION_RE.search(f.read()).group(1)
    except AttributeError:
        raise RuntimeError("Unable to determine version.")


with open(os.path.join(BASE_PATH, "README.md")) as readme:
    long_description = readme.read()


setup(
    name="socks5gate",
    description="Server side of the SOCKS5 handshake (RFC 1928/1929) "
    "with a small asyncio proxy around it.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    version=version,
    packages=find_namespace_packages(include=["socks5gate*"]),
    python_requires=">=3.9",
    install_requires=[
        "click",
        "pydantic>=2",
        "pydantic-settings",
        "parsimonious",
        "dependency-injector",
        "uvloop>=0.18",
    ],
    extras_require={"test": ["pytest", "coverage", "pytest-cov"]},
    entry_points={"console_scripts": ["socks5gate = socks5gate.__main__:main"]},
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
