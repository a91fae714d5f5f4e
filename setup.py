from setuptools import setup, find_packages

with open("requirements.txt") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="hotcmd",
    version="0.1.0",
    description="Hot-swappable hierarchical command entities for dispatch frameworks",
    author="hotcmd Team",
    packages=find_packages(include=["hotcmd", "hotcmd.*"]),
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "hotcmd=hotcmd.cli.__main__:main",
        ],
    },
    python_requires=">=3.11",
)
