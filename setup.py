from setuptools import setup

with open("README.md", "r", encoding="utf-8") as fp:
    long_description = fp.read()

setup(
    name="mclaunch",
    version="0.1.0",
    description="mclaunch is a module that provides an API to resolve the launch arguments of Minecraft "
                "versions and start the game, and a CLI built on it.",
    author="mclaunch contributors",
    packages=["mclaunch", "mclaunch.cli"],
    url="https://github.com/mclaunch/mclaunch",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    python_requires=">=3.7",
    install_requires=["certifi"],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["mclaunch = mclaunch.cli:main"]},
)
