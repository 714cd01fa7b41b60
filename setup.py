from setuptools import setup, find_packages

setup(
    name="mentorhub",
    version="0.1.0",
    packages=find_packages(include=["mentorhub", "mentorhub.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0",
        "psycopg2-binary",
        "python-jose[cryptography]",
        "pydantic[email]>=2",
        "pydantic-settings",
        "python-dotenv",
        "alembic"
    ],
    extras_require={
        "test": ["pytest"],
    },
)
