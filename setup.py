from setuptools import find_packages, setup

setup(
    name="gitversioned",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "gitversioned=gitversioned.cli:main",
        ],
    },
    python_requires=">=3.10",
    description="gitversioned: versioned record storage in a git repository",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Version Control",
        "Topic :: Database",
        "Programming Language :: Python :: 3.12",
    ],
)
