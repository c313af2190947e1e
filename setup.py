from setuptools import setup

from app.__version__ import __version_string__

setup(
    name="PyChip8",
    version=__version_string__,
    packages=["pychip8", "pychip8.util"],
    package_dir={"pychip8": "app/pychip8"},
    python_requires=">=3.11",
    install_requires=[
        "numpy",
        "pygame-ce",
        "rich",
        "returns",
        "bitarray",
    ],
    extras_require={"test": ["pytest"]},
    include_package_data=True,
    zip_safe=False,
)
