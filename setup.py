from os import path

from setuptools import setup


here = path.abspath(path.dirname(__file__))

version_loc = path.join(here, "testcontexts", "__version__.py")
about = {}
with open(version_loc, "r") as f:
    exec(f.read(), about)


setup(
    name=about["__title__"],
    version=about["__version__"],
    description=about["__description__"],
    author=about["__author__"],

    license=about["__license__"],

    classifiers=[
        "Intended Audience :: Developers",
        "Framework :: Pytest",
        "Topic :: Software Development :: Testing",
        "Topic :: Software Development :: Quality Assurance",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],

    keywords=(
        "testing test-automation bdd test-context fixtures tests "
        "development organization"
    ),
    packages=["testcontexts"],
    python_requires=">=3.8",
    install_requires=[
        "pytest",
    ],
    extras_require={
        "tests": [
            "pytest",
        ],
    },
)
