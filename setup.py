# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="zipprune",
    version="0.1.0",
    description="Browse ZIP archives with legacy-encoded names, mark entries and remove them in place",
    author="Enrique Paredes",
    author_email="eparedesbalen@gmail.com",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["zipprune*"]),
    python_requires=">=3.8",
    install_requires=[],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'zipprune=zipprune.main:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
