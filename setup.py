from setuptools import setup, find_packages


setup(
    name="orgpack",
    version="0.2",
    packages=find_packages(include=["orgpack", "orgpack.*"]),
    description="Pack a directory tree into a single .orgpack container, unpack it, or peek at its index.",
    python_requires=">=3.8",
    install_requires=[
        "zstandard>=0.22.0",
    ],
    entry_points={
        "console_scripts": [
            "orgpack=orgpack.cli:main",
        ]
    },
)
