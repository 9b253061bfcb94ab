from setuptools import setup, find_packages

setup(
    name="tradepost",
    version="1.0.0",
    python_requires=">=3.11",
    packages=find_packages(exclude=["tests*", "alembic*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "psycopg2-binary",
        "python-jose[cryptography]",
        "pydantic",
        "pydantic-settings",
        "python-dotenv",
        "alembic"
    ],
    extras_require={
        "test": ["pytest", "httpx"],
    },
)
