from setuptools import find_packages, setup

PACKAGE_NAME = "acmi-tracks"
PACKAGE_VERSION = "1.0.0"
PACKAGE_DESCRIPTION = """This package loads ACMI telemetry recordings into time-indexed
object tracks, answers interpolated time queries and writes the format back
"""
INSTALL_REQUIREMENTS = [
    "numpy",
    "loguru",
    "pyyaml",
]
TEST_REQUIREMENTS = [
    "pytest",
]


setup(
    name=PACKAGE_NAME,
    version=PACKAGE_VERSION,
    description=PACKAGE_DESCRIPTION,
    license="GPLv3",
    packages=find_packages(include=["acmi_tracks", "acmi_tracks.*"]),
    install_requires=INSTALL_REQUIREMENTS,
    extras_require={"test": TEST_REQUIREMENTS},
    zip_safe=False,
    include_package_data=True,
    python_requires=">=3.10",
)
