from setuptools import setup, find_packages

setup(
    name="kdindex",
    version="1.0.0",
    description="kdindex - Static kd-tree index for exact k-nearest-neighbor search",
    packages=find_packages(include=["kdindex", "kdindex.*"]),
    install_requires=[
        "numpy>=1.24.0",
        "joblib>=1.2.0",
        "pyyaml>=6.0",
        "scikit-learn>=1.2.0",
        "tqdm>=4.64.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Information Analysis",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
