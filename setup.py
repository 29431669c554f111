from setuptools import setup, find_packages

setup(
    name="rollkeep",
    version="0.1.0",
    description="A roll-and-keep dice engine with Ten Dice Rule normalization and resource spending",
    python_requires=">=3.11",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "flask>=3.0.0",
        "jsonschema>=4.20.0",
        "colorama>=0.4.6",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "black>=23.12.0",
            "mypy>=1.7.0",
            "pylint>=3.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "rollkeep=rollkeep.cli.commands:main",
            "rollkeep-server=rollkeep.web.server:main",
        ]
    },
)
