__title__ = "testcontexts"
__description__ = (
    "Nested test sets and test cases sharing lazily created test data"
)
__version__ = "0.1.0"
__author__ = "Oren Ben-Kiki"
__license__ = "MIT"
