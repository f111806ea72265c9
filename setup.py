from setuptools import setup, find_packages

# Core dependencies
core_requirements = [
    "numpy>=1.22.0",
    "pandas>=1.5.0",
    "matplotlib>=3.7.0",
]

# Test dependencies
test_requirements = [
    "pytest>=7.0.0",
]

setup(
    name="theme_color_engine",
    version="0.1.0",
    description="Reactive engine for themed CSS color variables with contrast checking and repair",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=core_requirements,
    extras_require={
        "test": test_requirements,
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "theme-color-engine=theme_color_engine.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)
