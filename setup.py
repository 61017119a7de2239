from setuptools import setup, find_packages

setup(
    name="database-mirror",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    python_requires=">=3.9",
    install_requires=[
        "loguru",
        "sqlalchemy>=1.4",
        "psycopg2-binary",
        "firebird-driver",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
