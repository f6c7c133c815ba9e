from pathlib import Path

from setuptools import find_packages, setup

setup(
    name="point_mapper",
    version=Path("./point_mapper/VERSION").read_text().strip(),
    description="Place, label and export named points on an image",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"point_mapper": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python",
        "easydict",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["point_mapper=point_mapper.cli:main"],
    },
)
